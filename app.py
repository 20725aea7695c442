import streamlit as st
import pandas as pd
import logging

from config import Settings
from data_visualizer import VisualizationManager
from exceptions import EmptyResultError, ReportGenerationError, ReturnAuditError, StructuralParseError
from matching.filters import FilterSet, filter_options, pending_view
from matching.scheduler import PolledScheduler
from models import Notification, ResultKind
from report_generator import ReportGenerator
from session import reset_session, uploader_key
from sheet_parser import ShipmentRecordExtractor
from utils import configure_logging, format_count, format_delivered_on
from verification_engine import VerificationEngine, should_highlight_qty, should_highlight_reason

settings = Settings.from_env()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

# Page configuration
st.set_page_config(
    page_title="ReturnAudit - Return Verification",
    page_icon="📦",
    layout="wide",
    initial_sidebar_state="expanded"
)

@st.cache_resource
def get_cached_extractor():
    """Cache the sheet extractor to avoid recreating on every rerun"""
    return ShipmentRecordExtractor()

@st.cache_resource
def get_cached_report_generator():
    """Cache the report generator"""
    return ReportGenerator()

@st.cache_resource
def get_cached_visualization_manager():
    """Cache the visualization manager"""
    return VisualizationManager()

st.markdown("""
<style>
    .main-header {
        background: linear-gradient(90deg, #1F497D 0%, #7EA1C4 100%);
        color: white;
        padding: 1rem;
        border-radius: 10px;
        margin-bottom: 2rem;
        text-align: center;
    }
</style>
""", unsafe_allow_html=True)


def display_header(title: str, subtitle: str):
    st.markdown(f"""
    <div class="main-header">
        <h1>{title}</h1>
        <p>{subtitle}</p>
    </div>
    """, unsafe_allow_html=True)


def queue_notification(notification: Notification):
    """Toast sink: notifications are rendered on the next script run"""
    st.session_state.pending_toasts.append(notification)


def queue_cue(cue: str):
    st.session_state.pending_cue = cue


def get_engine() -> VerificationEngine:
    if 'engine' not in st.session_state:
        st.session_state.engine = VerificationEngine(
            scheduler=PolledScheduler(),
            settings=settings,
            notify=queue_notification,
            play_cue=queue_cue,
        )
    return st.session_state.engine


def init_session_state():
    if 'file_name' not in st.session_state:
        st.session_state.file_name = None
    if 'pending_toasts' not in st.session_state:
        st.session_state.pending_toasts = []
    if 'pending_cue' not in st.session_state:
        st.session_state.pending_cue = None
    if 'load_warnings' not in st.session_state:
        st.session_state.load_warnings = []
    get_engine()


def clear_session():
    engine = get_engine()
    engine.clear()
    reset_session(st.session_state)


def upload_id(uploaded_file) -> str:
    return f"{uploaded_file.name}-{uploaded_file.size}-{getattr(uploaded_file, 'file_id', '')}"


def render_notifications():
    """Drain queued toasts and the last audio cue"""
    for notification in st.session_state.pending_toasts:
        icon = "⚠️" if notification.emphasized else "✅"
        st.toast(f"**{notification.title}**\n\n{notification.body}", icon=icon)
    st.session_state.pending_toasts = []

    cue = st.session_state.pending_cue
    st.session_state.pending_cue = None
    if cue:
        path = settings.sound_path(cue)
        if path.exists():
            st.audio(str(path), autoplay=True)
        else:
            logger.warning("Sound file for cue %s not found at %s", cue, path)


def on_awb_change():
    engine = get_engine()
    engine.on_input(st.session_state.awb_input)
    # Text input only reports on Enter, so there is nothing left to debounce
    engine.flush()
    # Streamlit only sends the value on Enter or blur. Text typed but not yet
    # submitted when an error or info message expires is still cleared.


@st.fragment(run_every=1)
def poll_timers():
    """Fire due auto-clear timers and refresh the page when state changed"""
    engine = get_engine()
    if engine.scheduler.run_pending():
        st.rerun()


def load_records(records, file_name: str, warnings=None):
    engine = get_engine()
    engine.load(records)
    st.session_state.file_name = file_name
    st.session_state.load_warnings = [str(w) for w in (warnings or [])]


def verify_returns_page():
    display_header("ReturnAudit", "Reconcile received return parcels against the supplier export")

    st.subheader("Upload Return Data")
    st.caption(
        "Upload Excel (.xlsx). Expects: Col F = AWB, row below the AWB in Col F = courier. "
        "Col B = Suborder ID (merged per shipment). Col A = product details (SKU, Category, Qty, Size)."
    )
    uploaded_file = st.file_uploader(
        "Select Excel File",
        type=['xlsx'],
        key=uploader_key(st.session_state, 'returns_upload'),
    )

    if uploaded_file is not None and st.session_state.get('loaded_upload_id') != upload_id(uploaded_file):
        st.session_state.loaded_upload_id = upload_id(uploaded_file)
        engine = get_engine()
        # Drop the old list and its timers before parsing the new file
        engine.clear()
        st.session_state.file_name = None
        try:
            result = get_cached_extractor().load_file(uploaded_file)
            load_records(result.records, uploaded_file.name, result.warnings)
            st.success(f"{len(result.records)} return shipments loaded from {uploaded_file.name}.")
        except EmptyResultError as e:
            st.error(f"No Data Found: {str(e)}")
        except StructuralParseError as e:
            st.error(f"File Processing Error: {str(e)}")
        except ReturnAuditError as e:
            st.error(f"Error processing file: {str(e)}")
        except Exception as e:
            logger.exception("Unexpected failure while reading %s", uploaded_file.name)
            st.error(f"Error processing file: {str(e)}")

    for warning in st.session_state.load_warnings:
        st.warning(warning)

    verification_section()


def resume_verification_page():
    display_header("Resume Verification", "Upload a generated report to continue where you left off")

    uploaded_report = st.file_uploader(
        "Select a report previously generated by this tool",
        type=['xlsx'],
        key=uploader_key(st.session_state, 'report_upload'),
    )

    if uploaded_report is not None and st.session_state.get('loaded_report_id') != upload_id(uploaded_report):
        st.session_state.loaded_report_id = upload_id(uploaded_report)
        engine = get_engine()
        engine.clear()
        st.session_state.file_name = None
        try:
            records = get_cached_report_generator().load_report(uploaded_report.getvalue())
            load_records(records, uploaded_report.name)
            st.success(f"{len(records)} items loaded from {uploaded_report.name}.")
        except ReturnAuditError as e:
            st.error(f"File Processing Error: {str(e)}")
        except Exception as e:
            logger.exception("Unexpected failure while reading %s", uploaded_report.name)
            st.error(f"File Processing Error: {str(e)}")

    verification_section()


def verification_section():
    engine = get_engine()
    if not engine.has_records:
        st.info("Upload a file to begin verification.")
        return

    st.caption(f"Loaded: **{st.session_state.file_name}** ({len(engine.records)} return shipments)")

    st.subheader("Verify Received AWBs")
    st.caption("Scan or type AWB numbers. Delhivery matches tolerate a wrong or missing last digit.")

    # Widget state can only be written before the widget is created
    if st.session_state.get('awb_input') != engine.input_value:
        st.session_state.awb_input = engine.input_value

    st.text_input(
        "Enter AWB Number",
        key='awb_input',
        on_change=on_awb_change,
        placeholder="Scan or type AWB Number here...",
        autocomplete="off",
    )

    render_verification_status(engine)
    poll_timers()

    col1, col2 = st.columns([3, 1])
    with col1:
        st.caption(format_count(engine.received_count, len(engine.records)))
    with col2:
        download_report_button(engine)

    pending_items_section(engine)


def render_verification_status(engine: VerificationEngine):
    result = engine.last_result
    if engine.status == ResultKind.ERROR:
        st.error(f"**Not Found** - {engine.message}")
    elif engine.status == ResultKind.INFO:
        st.info(f"**Already Verified** - {engine.message}")
    elif engine.status == ResultKind.SUCCESS and result is not None and result.record is not None:
        record = result.record
        with st.container(border=True):
            header = "⚠️ Check this parcel" if result.highlight else "✅ Verified"
            st.markdown(f"**{header}** - {engine.message}")
            st.markdown(
                f"**Courier:** {record.courier_partner} | **Return Type:** {record.return_type.value}  \n"
                f"**Reason:** {record.return_reason}  \n"
                f"**Product:** SKU: {record.sku} | Qty: {record.qty} | Size: {record.size}"
            )


def download_report_button(engine: VerificationEngine):
    generator = get_cached_report_generator()
    try:
        report_bytes = generator.generate_report_workbook(engine.records)
    except ReportGenerationError as e:
        st.error(f"Report Generation Error: {str(e)}")
        return

    st.download_button(
        label="Download Report",
        data=report_bytes,
        file_name=generator.report_filename(),
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        use_container_width=True,
    )


def build_filter_set(engine: VerificationEngine) -> FilterSet:
    records = engine.records
    with st.expander("Filters", expanded=False):
        col1, col2, col3 = st.columns(3)
        with col1:
            couriers = st.multiselect("Courier", filter_options(records, 'courier_partner'))
        with col2:
            return_types = st.multiselect("Return Type", filter_options(records, 'return_type'))
        with col3:
            delivered = st.multiselect("Delivered On", filter_options(records, 'delivered_on'))

        col4, col5, col6, col7 = st.columns(4)
        with col4:
            awb_text = st.text_input("AWB contains")
        with col5:
            suborder_text = st.text_input("Suborder ID contains")
        with col6:
            product_text = st.text_input("Product contains")
        with col7:
            reason_text = st.text_input("Reason contains")

    return FilterSet(
        courier_partner=set(couriers),
        return_type=set(return_types),
        delivered_on=set(delivered),
        awb=awb_text or None,
        suborder_id=suborder_text or None,
        product=product_text or None,
        reason=reason_text or None,
    )


def pending_items_section(engine: VerificationEngine):
    filters = build_filter_set(engine)
    pending = pending_view(engine.records, filters)

    st.subheader(f"Pending Items ({len(pending)})")
    if not pending:
        st.success("All items from the uploaded list have been verified.")
        return

    table = pd.DataFrame([
        {
            'Select': False,
            'AWB Number': r.awb,
            'Courier': r.courier_partner,
            'Product Details': f"SKU: {r.sku} | Qty: {r.qty} | Size: {r.size}",
            'Return Reason': r.return_reason,
            'Return Type': r.return_type.value,
            'Delivered On': format_delivered_on(r.delivered_on),
            'Attention': "⚠️" if should_highlight_reason(r.return_reason) or should_highlight_qty(r.qty) else "",
        }
        for r in pending
    ])

    edited = st.data_editor(
        table,
        hide_index=True,
        use_container_width=True,
        disabled=[column for column in table.columns if column != 'Select'],
        key='pending_table',
    )

    selected = edited.loc[edited['Select'], 'AWB Number'].tolist()
    if selected:
        st.caption(f"{len(selected)} item(s) selected.")
        if st.button("Mark Selected as Done", type="primary"):
            updated = engine.mark_selected(selected)
            queue_notification(Notification(
                title="Items Marked as Done",
                body=f"{updated} shipment(s) updated.",
                duration_ms=settings.auto_clear_ms,
            ))
            st.rerun()


def progress_page():
    display_header("Progress", "Received versus pending returns")
    engine = get_engine()
    if not engine.has_records:
        st.warning("No shipments loaded. Please upload a return sheet first.")
        return

    viz = get_cached_visualization_manager()
    col1, col2, col3 = st.columns(3)
    col1.metric("Total Shipments", len(engine.records))
    col2.metric("Received", engine.received_count)
    col3.metric("Pending", engine.pending_count)

    st.plotly_chart(viz.create_status_donut(engine.records), use_container_width=True)
    col_a, col_b = st.columns(2)
    with col_a:
        st.plotly_chart(viz.create_courier_progress_chart(engine.records), use_container_width=True)
    with col_b:
        st.plotly_chart(viz.create_return_type_chart(engine.records), use_container_width=True)


def main():
    init_session_state()
    engine = get_engine()
    engine.scheduler.run_pending()

    with st.sidebar:
        st.markdown("### ReturnAudit")
        st.markdown("---")
        page = st.radio(
            "Navigation",
            ["Verify Returns", "Resume Verification", "Progress"],
            label_visibility="collapsed"
        )
        st.markdown("---")
        if engine.has_records:
            st.caption(format_count(engine.received_count, len(engine.records)))
        if st.button("Clear All Data", type="secondary", help="Discard the loaded list and all progress",
                     use_container_width=True):
            clear_session()
            st.success("All data cleared!")
            st.rerun()

    render_notifications()

    if page == "Verify Returns":
        verify_returns_page()
    elif page == "Resume Verification":
        resume_verification_page()
    elif page == "Progress":
        progress_page()


if __name__ == "__main__":
    main()
