import streamlit as st
import pandas as pd

from db.database import LabServiceError
from reports import ReportUploader
from state import LabAppState


def render_admin_panel(state: LabAppState, controller, uploader: ReportUploader):
    # Not a security boundary: storage and table policies refuse non-admin writes.
    if state.profile is None or not state.profile.is_admin:
        return

    st.divider()
    st.subheader("🧪 Lab Admin: Upload Report")

    with st.form("admin-upload", clear_on_submit=True):
        phone = st.text_input("Patient phone (exactly as in their profile)")
        uploaded = st.file_uploader("Report (PDF)", type=["pdf"])
        submitted = st.form_submit_button("Upload")

    if submitted:
        if not phone.strip() or uploaded is None:
            st.warning("Enter patient phone and choose a file.")
        else:
            try:
                with st.spinner("Uploading..."):
                    report = controller.upload_report(
                        uploader,
                        phone,
                        uploaded.name,
                        uploaded.getvalue(),
                        uploaded.type or "application/pdf",
                    )
                st.success(f"Uploaded {report.file_name} for {report.phone}.")
            except LabServiceError as e:
                st.error(f"Upload failed: {e.message}")

    # --- Recent uploads ---
    with st.expander("Recent uploads"):
        try:
            recent = controller.registry.recent()
        except LabServiceError as e:
            st.error(f"Error loading reports: {e.message}")
            return

        if not recent:
            st.info("No reports uploaded yet.")
            return

        df = pd.DataFrame([{"phone": r.phone, "file": r.file_name, "url": r.url} for r in recent])
        st.dataframe(
            df,
            use_container_width=True,
            column_config={"url": st.column_config.LinkColumn("Download")},
        )
        st.download_button(
            "📥 Download as CSV",
            df.to_csv(index=False).encode("utf-8"),
            "lab_reports.csv",
            "text/csv",
            key="download-reports-csv",
        )
