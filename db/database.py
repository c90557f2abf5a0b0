# db/database.py

from supabase import create_client, Client, ClientOptions
from supabase_auth import SyncMemoryStorage
import streamlit as st


class LabServiceError(Exception):
    """A Supabase call (auth, table or storage) failed or was refused."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def error_message(e: Exception) -> str:
    # postgrest APIError carries .message/.details, auth errors carry .message
    for attr in ("message", "details"):
        value = getattr(e, attr, None)
        if value:
            return str(value)
    return str(e)


def get_supabase_client() -> Client:
    """
    Returns the Supabase client of this browser session.
    Uses the anon key: every user gets their own client and auth session,
    row-level security decides what each of them may read or write.
    The client's auth storage is kept next to it so the OAuth flow can read
    the PKCE code verifier.
    """

    if "supabase_client" not in st.session_state:
        url = st.secrets["supabase"]["url"]
        key = st.secrets["supabase"]["anon_key"]
        storage = SyncMemoryStorage()
        options = ClientOptions(flow_type="pkce", storage=storage)
        st.session_state.supabase_auth_storage = storage
        st.session_state.supabase_client = create_client(url, key, options=options)

    return st.session_state.supabase_client
