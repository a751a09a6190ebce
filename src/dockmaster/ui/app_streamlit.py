"""
Streamlit UI for DockMaster AI - service desk walkthrough and outreach.

Features:
- Request queue with the five-step guided flow per request
- Pipeline timeline for the four AI stages
- Editable work order table backed by the editor session
- Customer estimate preview and download
- Live scoping of new requests through the model provider
- Proactive outreach board with funnel metrics and fleet health
"""
import asyncio
import sys
import time
from pathlib import Path

import pandas as pd
import streamlit as st

# Add src to path for imports
src_path = Path(__file__).parent.parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from dockmaster.config.log_setup import configure_logging
from dockmaster.config.settings import get_settings
from dockmaster.data.reference_data import ReferenceData
from dockmaster.engine import LineItemValidationError, WorkOrderEditor, audit
from dockmaster.engine.margin import summarize
from dockmaster.estimate.customer_estimate import render_estimate
from dockmaster.flow.guided import STEP_LABELS, STEP_ORDER, GuidedFlow, GuidedStep, PipelineTimeline
from dockmaster.llm.errors import ScopeError
from dockmaster.llm.scope_service import ScopeService
from dockmaster.outreach.board import (
    CHANNELS,
    REVENUE_RANGES,
    STATUS_FILTERS,
    OutreachBoard,
    OutreachFilters,
    create_opportunity,
)
from dockmaster.outreach.fleet import fleet_overview


st.set_page_config(
    page_title="DockMaster AI",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_settings_cached():
    """Get cached settings."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)
    return settings


@st.cache_resource
def get_reference():
    """Get cached reference data."""
    return ReferenceData(get_settings_cached())


try:
    settings = get_settings_cached()
    reference = get_reference()
except Exception as e:
    st.error(f"System Error: {e}")
    st.stop()


# Session state: flow, editors per scenario, generated scenarios, outreach board
if 'generated' not in st.session_state:
    st.session_state.generated = {}
if 'flow' not in st.session_state:
    st.session_state.flow = GuidedFlow([s.id for s in reference.list_scenarios()])
if 'editors' not in st.session_state:
    st.session_state.editors = {}
if 'comments' not in st.session_state:
    st.session_state.comments = {}
if 'board' not in st.session_state:
    st.session_state.board = OutreachBoard.from_file(settings.outreach_file)

flow: GuidedFlow = st.session_state.flow


def lookup_scenario(scenario_id):
    return st.session_state.generated.get(scenario_id) or reference.get_scenario(scenario_id)


def editor_for(scenario) -> WorkOrderEditor:
    editors = st.session_state.editors
    if scenario.id not in editors:
        editors[scenario.id] = WorkOrderEditor(scenario.stages.work_order.to_work_order())
    return editors[scenario.id]


def items_frame(editor: WorkOrderEditor) -> pd.DataFrame:
    return pd.DataFrame([
        {
            'ID': item.id,
            'Description': item.description,
            'Category': item.category.value,
            'Quantity': item.quantity,
            'Unit Price': item.unit_price,
            'Labor Hours': item.labor_hours,
            'Total': item.total,
        }
        for item in editor.line_items
    ], columns=['ID', 'Description', 'Category', 'Quantity', 'Unit Price', 'Labor Hours', 'Total'])


def apply_table_edits(editor: WorkOrderEditor, edited: pd.DataFrame) -> list[str]:
    """Push changed cells into the editor; returns validation errors."""
    errors = []
    for row in edited.to_dict(orient='records'):
        item = editor.get_item(row['ID'])
        if item is None:
            continue
        changes = {}
        if row['Description'] != item.description:
            changes['description'] = row['Description']
        if row['Category'] != item.category.value:
            changes['category'] = row['Category']
        if row['Quantity'] != item.quantity:
            changes['quantity'] = row['Quantity']
        if row['Unit Price'] != item.unit_price:
            changes['unit_price'] = row['Unit Price']
        hours = None if pd.isna(row['Labor Hours']) else row['Labor Hours']
        if hours != item.labor_hours:
            changes['labor_hours'] = hours
        if not changes:
            continue
        try:
            editor.update_item(item.id, **changes)
        except LineItemValidationError as e:
            errors.append(str(e))
    return errors


# ============================================================================
# SIDEBAR: Request Queue
# ============================================================================
with st.sidebar:
    st.header("📥 Service Requests")

    counts = flow.status_counts()
    c1, c2, c3 = st.columns(3)
    c1.metric("New", counts['new'])
    c2.metric("Active", counts['in_progress'])
    c3.metric("Done", counts['completed'])

    labels = []
    for sid in flow.scenario_ids:
        scenario = lookup_scenario(sid)
        labels.append(f"{scenario.title} ({flow.statuses[sid].value.replace('_', ' ')})")

    selected = st.radio("Requests", options=range(len(labels)), format_func=lambda i: labels[i],
                        index=flow.scenario_index, label_visibility="collapsed")
    if selected != flow.scenario_index:
        flow.select_scenario(selected)
        st.rerun()

    st.divider()

    with st.expander("✨ New Request (Live AI)"):
        prompt = st.text_area("Customer message", height=120, placeholder="My twin Verados are running rough at idle...")
        if st.button("Scope Request", type="primary"):
            if not prompt.strip():
                st.warning("Enter a customer message first")
            else:
                with st.spinner("Scoping with AI..."):
                    try:
                        result = asyncio.run(ScopeService(settings, reference).generate_scenario(prompt))
                    except ScopeError as e:
                        st.error(str(e))
                    else:
                        st.session_state.generated[result.scenario.id] = result.scenario
                        flow.add_scenario(result.scenario.id)
                        for warning in result.warnings:
                            st.warning(warning)
                        st.rerun()


# ============================================================================
# MAIN CONTENT: TABBED INTERFACE
# ============================================================================
st.title(f"⚓ DockMaster AI | {reference.marina.name}")
st.caption(f"{reference.marina.location} | Labor ${reference.marina.labor_rate:,.0f}/hr")

tab1, tab2 = st.tabs(["🛠️ Guided Flow", "📣 Proactive Outreach"])


# ============================================================================
# TAB 1: GUIDED FLOW
# ============================================================================
with tab1:
    scenario = lookup_scenario(flow.scenario_id)
    editor = editor_for(scenario)
    stages = scenario.stages

    st.progress(flow.step_number / len(STEP_ORDER),
                text=f"Step {flow.step_number} of {len(STEP_ORDER)}: {STEP_LABELS[flow.step]}")

    if flow.step == GuidedStep.INTAKE:
        st.subheader(scenario.title)
        if scenario.message_source:
            st.caption(f"via {scenario.message_source.channel}: {scenario.message_source.identifier}")
        with st.container(border=True):
            st.markdown(scenario.customer_request)
        if scenario.suggested_reply:
            with st.expander("Suggested reply"):
                st.markdown(scenario.suggested_reply)

    elif flow.step == GuidedStep.PIPELINE:
        timeline = PipelineTimeline()
        placeholder = st.empty()
        if st.button("▶️ Run Analysis", type="primary"):
            started = time.monotonic()
            while True:
                elapsed = (time.monotonic() - started) * 1000
                statuses = timeline.status_at(elapsed)
                placeholder.dataframe(
                    pd.DataFrame([{'Stage': s.value, 'Status': v} for s, v in statuses.items()]),
                    use_container_width=True, hide_index=True
                )
                if timeline.is_complete(elapsed):
                    break
                time.sleep(0.1)

        extraction = stages.entity_extraction
        c1, c2 = st.columns(2)
        with c1:
            st.markdown("##### Entity Extraction")
            st.write(f"**{extraction.customer.name}** | {extraction.vessel.name} ({extraction.vessel.engine_type})")
            st.write(f"Service: {extraction.service_type} | Urgency: {extraction.urgency}")
            st.caption(", ".join(extraction.keywords))
        with c2:
            st.markdown("##### Diagnostic Retrieval")
            retrieval = stages.diagnostic_retrieval
            st.write(f"{retrieval.similar_cases} similar cases | confidence {retrieval.confidence:.0%}")
            for pattern in retrieval.patterns:
                st.caption(f"{pattern.symptom}: {pattern.typical_resolution}")

    elif flow.step == GuidedStep.REVIEW:
        st.subheader(f"📝 Work Order {editor.base.id}")

        edited_df = st.data_editor(
            items_frame(editor),
            use_container_width=True,
            num_rows="fixed",
            column_config={
                "ID": st.column_config.TextColumn("ID", disabled=True),
                "Category": st.column_config.SelectboxColumn(
                    "Category", options=["labor", "parts", "materials", "environmental", "discount"]
                ),
                "Quantity": st.column_config.NumberColumn("Quantity", min_value=1, step=1),
                "Unit Price": st.column_config.NumberColumn("Unit Price", format="$%.2f"),
                "Labor Hours": st.column_config.NumberColumn("Labor Hours", min_value=0.0),
                "Total": st.column_config.NumberColumn("Total", format="$%.2f", disabled=True),
            },
            hide_index=True,
            key=f"items_{scenario.id}"
        )

        b1, b2, b3, b4 = st.columns(4)
        with b1:
            if st.button("💾 Apply Edits", use_container_width=True):
                for error in apply_table_edits(editor, edited_df):
                    st.error(error)
        with b2:
            if st.button("➕ Add Line", use_container_width=True):
                editor.add_item()
                st.rerun()
        with b3:
            to_remove = st.selectbox("Remove", [""] + [item.id for item in editor.line_items],
                                     label_visibility="collapsed")
            if to_remove and st.button("🗑️ Remove", use_container_width=True):
                editor.remove_item(to_remove)
                st.rerun()
        with b4:
            if st.button("↩️ Reset", use_container_width=True, disabled=not editor.is_dirty):
                editor.reset_items()
                st.rerun()

        computed = editor.computed_work_order
        m1, m2, m3, m4 = st.columns(4)
        m1.metric("Subtotal", f"${computed.subtotal:,.2f}")
        m2.metric("Tax", f"${computed.tax:,.2f}")
        m3.metric("Total", f"${computed.total:,.2f}")
        m4.metric("Hours", f"{computed.estimated_hours:g}")

        for warning in audit(computed):
            st.warning(warning)

        margin = stages.margin_check
        summary = summarize(computed, margin.current_margin, margin.recommendations, margin.target_margin)
        with st.expander("📈 Margin Check", expanded=not summary.meets_target):
            st.write(f"Current {summary.current_margin:.0%} vs target {summary.target_margin:.0%}")
            st.write(f"Optimized total: ${summary.optimized_total:,.2f}")
            for rec in margin.recommendations:
                st.caption(f"**{rec.title}** ({rec.type}): {rec.description} | ${rec.estimated_revenue:,.2f}")

    elif flow.step == GuidedStep.APPROVAL:
        computed = editor.computed_work_order
        st.subheader("✅ Approval")
        st.metric("Total", f"${computed.total:,.2f}")
        st.session_state.comments[scenario.id] = st.text_area(
            "Service writer notes", value=st.session_state.comments.get(scenario.id, "")
        )
        if scenario.customer_confirmation:
            st.info(scenario.customer_confirmation)

    elif flow.step == GuidedStep.ESTIMATE:
        work_order = editor.commit()
        estimate = render_estimate(scenario, work_order, reference.marina,
                                   comments=st.session_state.comments.get(scenario.id))
        with st.container(border=True):
            st.markdown(estimate)
        st.download_button("📥 Estimate", data=estimate, file_name=f"estimate_{work_order.id}.md",
                           mime="text/markdown")

    st.divider()
    n1, n2, n3 = st.columns([1, 1, 4])
    with n1:
        if st.button("⬅️ Back", disabled=flow.step == GuidedStep.INTAKE):
            flow.prev_step()
            st.rerun()
    with n2:
        if st.button("Next ➡️", type="primary", disabled=flow.step == GuidedStep.ESTIMATE):
            flow.next_step()
            st.rerun()
    with n3:
        if flow.step == GuidedStep.ESTIMATE and st.button("🔁 Start Over"):
            flow.reset()
            st.rerun()


# ============================================================================
# TAB 2: PROACTIVE OUTREACH
# ============================================================================
with tab2:
    board: OutreachBoard = st.session_state.board

    metric_cols = st.columns(4)
    for col, metric in zip(metric_cols, board.funnel_metrics()):
        col.metric(metric.status.title(), metric.count, delta=metric.vs_monthly_avg,
                   help=f"${metric.revenue:,.0f} pipeline")

    f1, f2, f3, f4 = st.columns(4)
    with f1:
        status_filter = st.selectbox("Status", STATUS_FILTERS)
    with f2:
        channel_filter = st.selectbox("Channel", ("all",) + CHANNELS)
    with f3:
        revenue_filter = st.selectbox("Revenue", REVENUE_RANGES)
    with f4:
        priority_filter = st.selectbox("Priority", ("all", "high", "medium", "low"))

    filters = OutreachFilters(status=status_filter, channel=channel_filter,
                              revenue_range=revenue_filter, priority=priority_filter)

    for item in board.items(filters):
        customer = reference.get_customer(item.customer_id)
        vessel = reference.get_vessel(item.vessel_id)
        with st.container(border=True):
            st.markdown(f"**{item.title}** | {item.priority} | {item.status}")
            st.caption(f"{customer.name if customer else item.customer_id} | "
                       f"{vessel.name if vessel else item.vessel_id} | {item.channel} | "
                       f"${item.estimated_revenue:,.0f} | confidence {item.ai_confidence:.0%}")
            message = st.text_area("Message", value=item.message, key=f"msg_{item.id}", height=150)
            a1, a2, a3 = st.columns(3)
            if a1.button("💾 Save", key=f"save_{item.id}") and message != item.message:
                board.update_message(item.id, message)
                st.rerun()
            if item.status == "draft" and a2.button("📤 Send", key=f"send_{item.id}"):
                board.send(item.id)
                st.rerun()
            if item.status != "dismissed" and a3.button("🚫 Dismiss", key=f"dismiss_{item.id}"):
                board.dismiss(item.id)
                st.rerun()

    with st.expander("➕ Add Opportunity"):
        customers = reference.list_customers()
        customer_id = st.selectbox("Customer", [c.id for c in customers],
                                   format_func=lambda cid: reference.get_customer(cid).name)
        vessels = reference.vessels_for_customer(customer_id)
        vessel_id = st.selectbox("Vessel", [v.id for v in vessels],
                                 format_func=lambda vid: reference.get_vessel(vid).name)
        title = st.text_input("Title")
        revenue = st.number_input("Estimated revenue", min_value=0.0, step=50.0)
        if st.button("Add", type="primary"):
            try:
                board.add(create_opportunity(reference, customer_id, vessel_id, title, estimated_revenue=revenue))
            except ValueError as e:
                st.error(str(e))
            else:
                st.rerun()

    st.subheader("🚤 Fleet Health")
    st.dataframe(fleet_overview(reference), use_container_width=True, hide_index=True)
