# db/models.py
"""
Supabase does not require ORM model classes.
Tables created in your Supabase dashboard:

Table: users
- uid (uuid, PK, = auth.users.id)
- name (text)
- phone (text)
- email (text)
- is_admin (bool, default false)

Table: reports
- id (bigint, PK, identity)
- phone (text)          -- matched exactly against users.phone
- file_name (text)
- url (text)            -- public URL in the storage bucket
- created_at (timestamptz, default now())

Storage bucket: reports (public read)

The app only hides the admin panel from non-admins. Enforcement lives in
row level security:

    alter table users enable row level security;
    create policy "own profile" on users
        for select using (auth.uid() = uid);
    create policy "own profile insert" on users
        for insert with check (auth.uid() = uid and is_admin = false);

    create function is_lab_admin() returns boolean
        language sql security definer stable
        as $$ select coalesce((select is_admin from users where uid = auth.uid()), false) $$;

    -- policies on users must not query users directly (infinite recursion)
    create policy "own profile update" on users
        for update using (auth.uid() = uid)
        with check (auth.uid() = uid and is_admin = is_lab_admin());

    alter table reports enable row level security;
    create policy "patient reads own" on reports
        for select using (
            phone = (select phone from users where uid = auth.uid()) or is_lab_admin()
        );
    create policy "admin inserts" on reports
        for insert with check (is_lab_admin());

    create policy "admin uploads" on storage.objects
        for insert with check (bucket_id = 'reports' and is_lab_admin());
"""
