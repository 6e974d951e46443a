from __future__ import annotations
import streamlit as st
import plotly.express as px

from csc_core.config import load_config
from csc_core.database import Database
from csc_core.errors import CscError, handle_error, safe_execute
from csc_core.logging import setup_logging
from csc_core.services import ReportService

# ============================================================================
# PAGE CONFIGURATION
# ============================================================================
st.set_page_config(
    page_title="CSC ERP - System",
    page_icon="🗄️",
    layout="wide",
)


@st.cache_resource
def get_database() -> Database:
    """One Database per server process."""
    config = load_config()
    setup_logging(level=config.log_level, log_to_file=config.log_to_file)
    db = Database(config)
    db.init()
    return db


try:
    db = get_database()
except CscError as e:
    handle_error(e, user_message="Could not start the data layer")
    st.stop()

st.title("🗄️ System & Data")

# ============================================================================
# CONNECTIVITY
# ============================================================================
status = db.monitor.get_status_display()
status_cols = st.columns(3)

with status_cols[0]:
    st.metric("Cloud Sync", "Configured" if db.is_cloud_active() else "Local only")
with status_cols[1]:
    st.metric("Remote Status", status["status"].title())
with status_cols[2]:
    st.metric("Local Store", "Available" if db.local.available else "Unavailable")

if status["error"]:
    st.warning(f"Last remote error: {status['error']}")

reports = ReportService(db.jobs, db.inventory, db.services)
stats = reports.dashboard_stats()
kpi_cols = st.columns(4)
kpi_cols[0].metric("Pending Jobs", stats.pending_jobs)
kpi_cols[1].metric("Revenue", f"₹{stats.total_revenue:,.2f}")
kpi_cols[2].metric("Outstanding", f"₹{stats.total_balance:,.2f}")
kpi_cols[3].metric("Low Stock", stats.low_stock_count)

by_category = reports.revenue_by_category()
if not by_category.empty:
    fig = px.bar(by_category, x="category", y="revenue", title="Revenue by Service Category")
    st.plotly_chart(fig, use_container_width=True)

if st.button("🔄 Refresh", type="secondary"):
    st.rerun()

# ============================================================================
# BACKUP
# ============================================================================
st.subheader("Backup")
st.caption("Exports every collection to one Excel workbook, one sheet per table.")

if st.button("Prepare backup", type="primary"):
    prepared = safe_execute(db.system.backup, error_message="Backup failed")
    if prepared is not None:
        st.session_state["backup_file"] = prepared

backup_file = st.session_state.get("backup_file")
if backup_file is not None:
    st.download_button(
        "⬇️ Download backup",
        data=backup_file.content,
        file_name=backup_file.filename,
        mime=backup_file.mime_type,
    )

# ============================================================================
# RESTORE
# ============================================================================
st.subheader("Restore")
st.caption("Rows are saved one by one; existing records with the same id are replaced.")

uploaded = st.file_uploader("Backup workbook", type=["xlsx"])
if uploaded is not None and st.button("Restore from workbook"):
    # The report is falsy when rows failed, so test for None
    report = safe_execute(db.system.restore, uploaded.getvalue())
    if report is not None:
        if report:
            st.success(f"Restored {report.total_saved} records")
        else:
            st.warning(
                f"Restored {report.total_saved} records, "
                f"{len(report.failures)} rows failed"
            )
            st.dataframe(
                [{"table": f.table, "row": f.row, "error": f.error} for f in report.failures]
            )
        if report.ignored_sheets:
            st.info(f"Ignored sheets: {', '.join(report.ignored_sheets)}")
