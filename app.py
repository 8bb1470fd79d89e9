"""Solar Quotation Manager Streamlit app.

Capture client details, configure a PV system, price it and keep the
resulting quotations as projects stored in a local data directory.
"""

import logging
from pathlib import Path

import streamlit as st
import pandas as pd
import plotly.graph_objects as go

from config import APP_CONFIG, DATA_DIR, IMAGES_DIR, UPLOAD_CONFIG
from constants import STEP_TITLES, SUPPORT_EMAIL, SUPPORT_PHONE
from dashboard import (
    get_dashboard_stats,
    monthly_frame,
    parse_timestamp,
    recent_projects,
    status_counts,
)
from models import ProjectStatus, validate_settings
from quotation import generate_quotation_pdf, quote_reference
from repository import ProjectNotFoundError, ProjectRepository
from storage import JsonFileStore, StorageError
from utils import format_currency, format_number
from workflow import QuotationWorkflow, WorkflowError, WorkflowStep

logging.basicConfig(
    level=APP_CONFIG["log_level"],
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("solar_quote.app")

PAGES = ["Dashboard", "New Quotation", "Projects", "Settings"]

st.set_page_config(
    page_title=APP_CONFIG["app_name"],
    page_icon="☀️",
    layout="wide"
)

st.markdown("""
<style>
    [data-testid="stSidebar"] {
        background-color: #fef9e7;
    }
    [data-testid="stSidebar"] label,
    [data-testid="stSidebar"] p,
    [data-testid="stSidebar"] span {
        color: #1a1a1a !important;
        font-weight: 500 !important;
    }
    .status-draft {
        background-color: #fff3cd;
        color: #856404;
        padding: 2px 10px;
        border-radius: 10px;
    }
    .status-completed {
        background-color: #d4edda;
        color: #155724;
        padding: 2px 10px;
        border-radius: 10px;
    }
    .preview-total {
        font-size: 1.6em;
        font-weight: bold;
        color: #2e7d32;
    }
</style>
""", unsafe_allow_html=True)


@st.cache_resource
def get_repository() -> ProjectRepository:
    return ProjectRepository(JsonFileStore(DATA_DIR))


def go_to(page: str, project_id: str = None):
    # Applied before the sidebar radio is drawn on the next run
    st.session_state["next_page"] = page
    if project_id is not None:
        st.session_state["selected_project"] = project_id


def status_badge(status: ProjectStatus) -> str:
    return f'<span class="status-{status.value}">{status.value}</span>'


def format_created(project) -> str:
    created = parse_timestamp(project.created_at)
    return created.strftime("%b %d, %Y") if created else "Unknown date"


def show_errors(errors: dict):
    for message in errors.values():
        st.error(message)


def as_number(value, kind):
    """number_input refuses mixed int/float arguments; None leaves the box empty."""
    return None if value is None else kind(value)


# ============================================================================
# DASHBOARD
# ============================================================================

def render_dashboard(repo: ProjectRepository):
    col_title, col_action = st.columns([4, 1])
    with col_title:
        st.header("Dashboard")
        st.markdown("Here's what's happening with your solar projects.")
    with col_action:
        st.button("➕ New Quotation", on_click=go_to, args=("New Quotation",), type="primary")

    projects = repo.projects
    stats = get_dashboard_stats(projects)
    counts = status_counts(projects)

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Total Income", format_currency(stats.total_income))
    with col2:
        st.metric("Total kW Installed", f"{format_number(stats.total_kw_installed)} kW")
    with col3:
        st.metric("Total Projects", format_number(stats.total_projects),
                  help=f"{counts['completed']} completed")

    col_chart, col_recent = st.columns(2)

    with col_chart:
        st.subheader("Monthly Performance")
        df_monthly = monthly_frame(stats)
        fig = go.Figure(data=[
            go.Bar(
                x=df_monthly["month"],
                y=df_monthly["income"],
                marker_color="#3B82F6",
                customdata=df_monthly["projects"],
                hovertemplate="%{x}<br>Income: ₹%{y:,.0f}<br>Projects: %{customdata}<extra></extra>",
            )
        ])
        fig.update_layout(
            yaxis_title="Income (₹)",
            height=350,
            margin=dict(l=10, r=10, t=10, b=10),
        )
        st.plotly_chart(fig, use_container_width=True)

    with col_recent:
        st.subheader("Recent Projects")
        recent = recent_projects(projects)
        if not recent:
            st.info("No projects yet. Create your first quotation to get started.")
        for project in recent:
            with st.container(border=True):
                col_info, col_view = st.columns([5, 1])
                with col_info:
                    st.markdown(f"**{project.personal_details.name}**")
                    st.caption(
                        f"{format_number(project.calculations.system_size)} kW • "
                        f"{format_currency(project.calculations.total_payable_amount)} • "
                        f"{format_created(project)}"
                    )
                    st.markdown(status_badge(project.status), unsafe_allow_html=True)
                with col_view:
                    st.button("View", key=f"view_{project.id}", on_click=go_to,
                              args=("Projects", project.id))


# ============================================================================
# NEW QUOTATION
# ============================================================================

def render_preview(workflow: QuotationWorkflow):
    st.subheader("Live Preview")
    calculations = workflow.preview()
    if calculations is None:
        st.caption("Fill in the system configuration to see pricing.")
        return

    draft = workflow.draft
    st.metric("System Size", f"{format_number(calculations.system_size)} kW")
    rows = [
        ("Base Price", format_currency(calculations.total_base_price)),
        ("GST", format_currency(calculations.gst_amount)),
    ]
    if draft.get("cleaning_charges"):
        rows.append(("Cleaning Charges", format_currency(draft["cleaning_charges"])))
    if draft.get("subsidy"):
        rows.append(("Subsidy", f"-{format_currency(draft['subsidy'])}"))
    for label, value in rows:
        col_label, col_value = st.columns(2)
        col_label.write(label)
        col_value.write(value)
    st.markdown("**Total Payable**")
    st.markdown(
        f'<div class="preview-total">{format_currency(calculations.total_payable_amount)}</div>',
        unsafe_allow_html=True,
    )


def render_personal_step(workflow: QuotationWorkflow):
    details = workflow.details_draft
    with st.form("personal_details"):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Full Name", value=details["name"], placeholder="Enter full name")
        with col2:
            phone = st.text_input("Phone Number", value=details["phone"], placeholder="Enter phone number")
        email = st.text_input("Email Address", value=details["email"], placeholder="Enter email address")
        address = st.text_area("Installation Address", value=details["address"],
                               placeholder="Enter installation address", height=100)
        submitted = st.form_submit_button("Continue to System Configuration →", type="primary")

    if submitted:
        result = workflow.submit_personal_details(
            {"name": name, "phone": phone, "email": email, "address": address}
        )
        if result.ok:
            st.rerun()
        show_errors(result.errors)


def render_config_step(workflow: QuotationWorkflow):
    draft = workflow.draft
    col1, col2 = st.columns(2)
    with col1:
        make = st.text_input("Panel Make", value=draft["make"] or "",
                             placeholder="e.g., Trina Solar, Jinko Solar")
        watt_peak = st.number_input("Watt Peak (W)", min_value=0.0, step=10.0,
                                    value=as_number(draft["watt_peak"], float), placeholder="e.g., 540")
        number_of_panels = st.number_input("Number of Panels", min_value=0, step=1,
                                           value=as_number(draft["number_of_panels"], int), placeholder="e.g., 20")
        base_price_per_kw = st.number_input("Base Price per kW (₹)", min_value=0.0, step=1000.0,
                                            value=float(draft["base_price_per_kw"]))
    with col2:
        gst_percentage = st.number_input("GST Percentage (%)", min_value=0.0, max_value=100.0,
                                         step=0.1, value=float(draft["gst_percentage"]))
        cleaning_charges = st.number_input("Cleaning Charges (₹)", min_value=0.0, step=500.0,
                                           value=float(draft["cleaning_charges"]))
        subsidy = st.number_input("Subsidy (₹)", min_value=0.0, step=1000.0,
                                  value=float(draft["subsidy"]))

    workflow.update_draft(
        make=make,
        watt_peak=watt_peak,
        number_of_panels=number_of_panels,
        base_price_per_kw=base_price_per_kw,
        gst_percentage=gst_percentage,
        cleaning_charges=cleaning_charges,
        subsidy=subsidy,
    )

    col_back, col_next = st.columns([1, 4])
    with col_back:
        if st.button("← Back"):
            workflow.back()
            st.rerun()
    with col_next:
        if st.button("Review & Generate →", type="primary"):
            result = workflow.submit_system_configuration({})
            if result.ok:
                st.rerun()
            show_errors(result.errors)


def render_review_step(repo: ProjectRepository, workflow: QuotationWorkflow):
    details = workflow.personal_details
    config = workflow.system_configuration
    calculations = workflow.preview()

    st.markdown("#### Client Information")
    col1, col2 = st.columns(2)
    with col1:
        st.write(f"**Name:** {details.name}")
        st.write(f"**Email:** {details.email}")
    with col2:
        st.write(f"**Phone:** {details.phone}")
    st.write(f"**Address:** {details.address}")

    st.markdown("#### System Configuration")
    col1, col2 = st.columns(2)
    with col1:
        st.write(f"**Make:** {config.make}")
        st.write(f"**Watt Peak:** {format_number(config.watt_peak)}W")
    with col2:
        st.write(f"**Number of Panels:** {config.number_of_panels}")
        st.write(f"**System Size:** {format_number(calculations.system_size)} kW")

    col_back, col_commit = st.columns([1, 4])
    with col_back:
        if st.button("← Back"):
            workflow.back()
            st.rerun()
    with col_commit:
        label = "✅ Save Changes" if workflow.editing_id else "✅ Generate Quotation"
        if st.button(label, type="primary"):
            try:
                project_id = workflow.commit(repo)
            except (StorageError, ProjectNotFoundError, WorkflowError) as exc:
                logger.exception("Could not save quotation")
                st.error(f"Could not save the quotation: {exc}")
                return
            st.session_state["workflow"] = None
            st.toast("Quotation saved successfully!")
            go_to("Projects", project_id)
            st.rerun()


def render_quotation(repo: ProjectRepository):
    workflow = st.session_state.get("workflow")
    if workflow is None or workflow.closed:
        workflow = QuotationWorkflow(repo.settings)
        st.session_state["workflow"] = workflow

    st.header("Edit Quotation" if workflow.editing_id else "Create New Quotation")
    st.markdown("Generate professional solar installation quotations.")

    steps = list(WorkflowStep)
    current = steps.index(workflow.step)
    st.progress((current + 1) / len(steps),
                text=f"Step {current + 1} of {len(steps)}: {STEP_TITLES[workflow.step.value]}")

    col_form, col_preview = st.columns([2, 1])
    with col_form:
        if workflow.step == WorkflowStep.PERSONAL_DETAILS:
            render_personal_step(workflow)
        elif workflow.step == WorkflowStep.SYSTEM_CONFIG:
            render_config_step(workflow)
        else:
            render_review_step(repo, workflow)
    with col_preview:
        with st.container(border=True):
            render_preview(workflow)

    if st.button("Discard quotation"):
        st.session_state["workflow"] = None
        st.rerun()


# ============================================================================
# PROJECTS
# ============================================================================

def save_uploads(project_id: str, uploads) -> list:
    """Write uploaded image files under the data directory, returning their paths."""
    target = IMAGES_DIR / project_id
    target.mkdir(parents=True, exist_ok=True)
    refs = []
    for upload in uploads:
        path = target / Path(upload.name).name
        path.write_bytes(upload.getvalue())
        refs.append(str(path))
    return refs


def render_project_detail(repo: ProjectRepository, project):
    details = project.personal_details
    config = project.system_configuration
    calc = project.calculations

    col_title, col_actions = st.columns([3, 2])
    with col_title:
        st.header(details.name)
        st.markdown(
            f"{status_badge(project.status)} &nbsp; Created {format_created(project)} "
            f"&nbsp; Ref {quote_reference(project)}",
            unsafe_allow_html=True,
        )
    with col_actions:
        try:
            pdf_bytes = generate_quotation_pdf(project, company_name=APP_CONFIG["company_name"])
        except Exception:
            logger.exception("PDF generation failed for project %s", project.id)
            st.error("Failed to generate PDF. Please try again.")
        else:
            st.download_button(
                label="📄 Download PDF",
                data=pdf_bytes,
                file_name=f"quotation_{quote_reference(project)}.pdf",
                mime="application/pdf",
                key=f"pdf_{project.id}",
            )
        if st.button("✏️ Edit", key=f"edit_{project.id}"):
            st.session_state["workflow"] = QuotationWorkflow.edit(project, repo.settings)
            go_to("New Quotation")
            st.rerun()

    col_main, col_side = st.columns([2, 1])

    with col_main:
        st.subheader("Client Information")
        col1, col2 = st.columns(2)
        with col1:
            st.write(f"**Full Name:** {details.name}")
            st.write(f"**Email Address:** {details.email}")
        with col2:
            st.write(f"**Phone Number:** {details.phone}")
            st.write(f"**Installation Address:** {details.address}")

        st.subheader("System Configuration")
        col1, col2, col3 = st.columns(3)
        col1.metric("System Size", f"{format_number(calc.system_size)} kW")
        col2.metric("Number of Panels", config.number_of_panels)
        col3.metric("Watt Peak", f"{format_number(config.watt_peak)}W")
        st.write(f"**Panel Make:** {config.make}")
        st.write(f"**Base Price per kW:** {format_currency(config.base_price_per_kw)}")
        st.write(f"**GST Rate:** {format_number(config.gst_percentage)}%")
        st.write(f"**Cleaning Charges:** {format_currency(config.cleaning_charges)}")

        st.subheader("Project Images")
        uploads = st.file_uploader(
            "Upload Images",
            type=UPLOAD_CONFIG["allowed_extensions"],
            accept_multiple_files=True,
            key=f"upload_{project.id}",
        )
        if uploads and st.button("Attach images", key=f"attach_{project.id}"):
            try:
                refs = save_uploads(project.id, uploads)
                repo.append_images(project.id, refs)
            except (OSError, StorageError) as exc:
                logger.exception("Image upload failed for project %s", project.id)
                st.error(f"Image upload failed: {exc}")
            else:
                st.toast(f"{len(refs)} image(s) uploaded successfully!")
                st.rerun()
        existing = [ref for ref in project.images if Path(ref).exists()]
        if existing:
            st.image(existing, width=220)
        elif not project.images:
            st.caption("No images uploaded yet. Upload project images to document the installation.")

    with col_side:
        with st.container(border=True):
            st.subheader("Financial Summary")
            st.write(f"Base Price: **{format_currency(calc.total_base_price)}**")
            st.write(f"GST ({format_number(config.gst_percentage)}%): **{format_currency(calc.gst_amount)}**")
            if config.cleaning_charges > 0:
                st.write(f"Cleaning Charges: **{format_currency(config.cleaning_charges)}**")
            if config.subsidy > 0:
                st.write(f"Subsidy: **-{format_currency(config.subsidy)}**")
            st.metric("Total Payable", format_currency(calc.total_payable_amount))

        st.subheader("Project Status")
        for status in ProjectStatus:
            if st.button(status.value.capitalize(), key=f"status_{status.value}_{project.id}",
                         disabled=project.status == status, use_container_width=True):
                try:
                    repo.set_status(project.id, status)
                except (StorageError, ProjectNotFoundError) as exc:
                    st.error(f"Could not update status: {exc}")
                else:
                    st.toast(f"Project marked as {status.value}!")
                    st.rerun()

        with st.expander("Delete project"):
            st.warning("This permanently removes the project.")
            if st.button("Delete", key=f"delete_{project.id}", type="primary"):
                try:
                    repo.delete_project(project.id)
                except StorageError as exc:
                    st.error(f"Could not delete project: {exc}")
                else:
                    st.session_state.pop("selected_project", None)
                    st.toast("Project deleted")
                    st.rerun()


def render_projects(repo: ProjectRepository):
    projects = repo.projects
    selected_id = st.session_state.get("selected_project")
    project = repo.get_project(selected_id) if selected_id else None

    if selected_id and project is None:
        st.warning("Project not found. It may have been deleted.")
        st.session_state.pop("selected_project", None)

    if project is not None:
        st.button("← All Projects", on_click=lambda: st.session_state.pop("selected_project", None))
        render_project_detail(repo, project)
        return

    st.header("Projects")
    if not projects:
        st.info("No projects yet.")
        st.button("Create your first project", on_click=go_to, args=("New Quotation",))
        return

    df_projects = pd.DataFrame([
        {
            "Client": p.personal_details.name,
            "System (kW)": p.calculations.system_size,
            "Total Payable": format_currency(p.calculations.total_payable_amount),
            "Status": p.status.value,
            "Created": format_created(p),
        }
        for p in recent_projects(projects, limit=len(projects))
    ])
    st.dataframe(df_projects, use_container_width=True, hide_index=True)

    labels = {
        p.id: f"{p.personal_details.name} ({format_created(p)}, {quote_reference(p)})"
        for p in projects
    }
    choice = st.selectbox("Open project", options=list(labels), format_func=labels.get)
    st.button("Open", on_click=go_to, args=("Projects", choice))


# ============================================================================
# SETTINGS
# ============================================================================

def render_settings(repo: ProjectRepository):
    st.header("Settings")
    settings = repo.settings
    counts = status_counts(repo.projects)

    col_form, col_side = st.columns([2, 1])

    with col_form:
        st.subheader("Pricing Defaults")
        with st.form("settings"):
            gst = st.number_input("Default GST Percentage (%)", min_value=0.0, max_value=100.0, step=0.1,
                                  value=float(settings.default_gst_percentage),
                                  help="This GST percentage will be used as default for new quotations")
            base_price = st.number_input("Default Base Price per kW (₹)", min_value=0.0, step=1000.0,
                                         value=float(settings.default_base_price_per_kw),
                                         help="This price will be used as default for new quotations")
            submitted = st.form_submit_button("💾 Save Settings", type="primary")

        if submitted:
            values = {"default_gst_percentage": gst, "default_base_price_per_kw": base_price}
            result = validate_settings(values)
            if not result.ok:
                show_errors(result.errors)
            else:
                try:
                    repo.update_settings(**values)
                except StorageError as exc:
                    st.error(f"Could not save settings: {exc}")
                else:
                    st.success("Settings updated successfully!")

        st.subheader("Data Management")
        st.markdown("Download all your projects as a JSON file.")
        st.download_button(
            label=f"⬇️ Export Projects ({len(repo.projects)})",
            data=repo.export_all(),
            file_name=repo.export_filename(),
            mime="application/json",
        )

        st.markdown("This will permanently delete all your data.")
        confirm = st.checkbox("I understand this action cannot be undone")
        if st.button("🗑️ Clear All Data", disabled=not confirm):
            try:
                repo.clear_all()
            except StorageError as exc:
                st.error(f"Could not clear data: {exc}")
            else:
                st.session_state.pop("workflow", None)
                st.session_state.pop("selected_project", None)
                st.rerun()

    with col_side:
        st.subheader("System Info")
        st.write(f"**Completed projects:** {counts['completed']}")
        st.write(f"**Draft projects:** {counts['draft']}")
        st.write(f"**Version:** {APP_CONFIG['version']}")

        st.subheader("Support")
        st.markdown(f"""
        Contact our support team for assistance with your solar management system.

        **Email:** {SUPPORT_EMAIL}
        **Phone:** {SUPPORT_PHONE}
        """)


# ============================================================================
# MAIN
# ============================================================================

try:
    repository = get_repository()
except StorageError as exc:
    logger.exception("Could not load stored projects")
    st.error(f"Could not load stored data: {exc}")
    st.stop()

st.session_state.setdefault("page", PAGES[0])
if "next_page" in st.session_state:
    st.session_state["page"] = st.session_state.pop("next_page")

with st.sidebar:
    st.title(f"☀️ {APP_CONFIG['company_name']}")
    st.radio("Navigate", PAGES, key="page")

page = st.session_state["page"]
if page == "Dashboard":
    render_dashboard(repository)
elif page == "New Quotation":
    render_quotation(repository)
elif page == "Projects":
    render_projects(repository)
else:
    render_settings(repository)
