"""
Streamlit Frontend for Household Hub

Team members use this page to record shared expenses and to see who
owes whom.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Clear error messages in simple language
3. Settlements are always recomputed from the full expense list
4. No hidden actions

The team and the acting member are chosen in the sidebar and passed
explicitly into every flow.
"""

import asyncio
from datetime import date, datetime

import streamlit as st

from household.audit import AuditLogger, create_correlation_id
from household.config import get_settings, validate_all_settings
from household.currency import format_currency
from household.expenses import (
    ImportFormatError,
    apply_share,
    expenses_by_category,
    filter_expenses,
    total_in_primary_currency,
)
from household.models import (
    EXPENSE_CATEGORIES,
    CalendarEvent,
    ContentPolicy,
    ContentType,
    Expense,
    Member,
    Role,
    Team,
)
from household.orchestrator import (
    EventFlow,
    ExpenseFlow,
    ExpenseValidationError,
    GroceryFlow,
    PermissionDeniedError,
    SettlementFlow,
    TeamFlow,
    create_app_components,
)
from household.permissions import (
    can_change_member_role,
    can_manage_content,
    can_manage_team_settings,
    can_remove_member,
)
from household.services.storage import NotFoundError, StorageError


# Page configuration
st.set_page_config(
    page_title="Household Hub",
    page_icon="🏠",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .success-box {
        padding: 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .info-box {
        padding: 20px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def default_team() -> Team:
    """Team used when storage holds none yet."""
    settings = get_settings().app
    return Team(
        id="household",
        name="Household",
        owner_id="owner",
        members=[
            Member(id="owner", name="Owner", role=Role.OWNER),
        ],
        settings={
            "currency": {
                "primary": settings.default_primary_currency,
                "supported": settings.supported_currencies_list,
            },
            "content_management": {
                content_type.value: settings.default_content_policy
                for content_type in ContentType
            },
        },
    )


def main():
    """Main application entry point."""
    components = get_components()

    st.sidebar.title("🏠 Household Hub")
    st.sidebar.markdown("---")

    team_id = st.sidebar.text_input("Team ID", value="household")
    team = run_async(components.team_flow.get_team(team_id))
    if team is None:
        team = default_team()
        run_async(components.team_flow.save_new_team(team))

    member = st.sidebar.selectbox(
        "Acting as",
        options=team.members,
        format_func=lambda m: f"{m.name} ({m.role.value})",
    )

    page = st.sidebar.radio(
        "Navigate to:",
        [
            "💸 Debt Tracking",
            "🧾 Expenses",
            "➕ Add Expense",
            "🛒 Groceries",
            "📅 Calendar",
            "👥 Team Settings",
            "⚙️ Settings",
        ],
        index=0,
    )

    try:
        if page == "💸 Debt Tracking":
            render_debts_page(components.settlement_flow, team)
        elif page == "🧾 Expenses":
            render_expenses_page(components.expense_flow, team, member)
        elif page == "➕ Add Expense":
            render_add_expense_page(components.expense_flow, team, member)
        elif page == "🛒 Groceries":
            render_groceries_page(components.grocery_flow, team, member)
        elif page == "📅 Calendar":
            render_calendar_page(components.event_flow, team, member)
        elif page == "👥 Team Settings":
            render_team_settings_page(components.team_flow, team, member)
        elif page == "⚙️ Settings":
            render_settings_page(components.audit_logger, team)
    except StorageError as e:
        st.error(f"Storage is unavailable right now: {e}")


def render_debts_page(settlement_flow: SettlementFlow, team: Team):
    """Render who owes whom, and the shortest way to settle."""
    st.title("💸 Debt Tracking")

    plan = run_async(settlement_flow.compute(team, create_correlation_id()))

    if plan.is_settled:
        st.markdown("""
        <div class="success-box">
            <h4>No debts to settle!</h4>
        </div>
        """, unsafe_allow_html=True)
        return

    col1, col2 = st.columns(2)

    with col1:
        st.subheader("Original Debts")
        for line in plan.debt_lines:
            st.markdown(f"- {line}")

    with col2:
        st.subheader("Optimized Settlement")
        st.caption(
            f"{len(plan.transactions)} payment(s) instead of {len(plan.raw_debts)}"
        )
        for line in plan.settlement_lines:
            st.markdown(f"- {line}")


def render_expenses_page(expense_flow: ExpenseFlow, team: Team, member: Member):
    """Render the expense list with filters, totals, export and import."""
    st.title("🧾 Expenses")

    expenses = run_async(expense_flow.list_expenses(team))
    currency = team.primary_currency

    col1, col2 = st.columns(2)
    with col1:
        category = st.selectbox(
            "Filter by Category",
            options=["all"] + EXPENSE_CATEGORIES,
            format_func=lambda x: "All Categories" if x == "all" else x,
        )
    with col2:
        tab = st.selectbox(
            "Paid by",
            options=["all"] + [m.id for m in team.members],
            format_func=lambda x: "Everyone" if x == "all" else team.member_name(x),
        )

    shown = filter_expenses(expenses, category=category, tab=tab)

    st.metric(
        "Total",
        format_currency(total_in_primary_currency(shown, team), currency),
    )

    with st.expander("By category"):
        for name, amount in expenses_by_category(shown, team).items():
            st.markdown(f"**{name}:** {format_currency(amount, currency)}")

    st.markdown("---")

    if not shown:
        st.info("No expenses yet. Use the 'Add Expense' page to add one.")

    for expense in shown:
        with st.container():
            st.markdown(
                f"**{expense.description}** · {expense.category} · "
                f"{format_currency(expense.amount, expense.currency)} · "
                f"paid by {expense.paid_by or expense.paid_by_id} · "
                f"{expense.date.strftime('%d %B %Y')}"
            )
            if expense.is_shared:
                st.caption(", ".join(
                    f"{share.member_name or share.member_id}: {share.share:g}%"
                    for share in expense.shares
                ))
            if can_manage_content(team, member, ContentType.EXPENSES, expense.paid_by_id):
                if st.button("🗑️ Delete", key=f"delete-{expense.id}"):
                    run_async(expense_flow.delete_expense(team, member, expense.id))
                    st.rerun()

    st.markdown("---")
    st.subheader("Export / Import")

    filename, document = run_async(expense_flow.export_expenses(team, member))
    st.download_button(
        "⬇️ Export Expenses",
        data=document,
        file_name=filename,
        mime="application/json",
    )

    uploaded = st.file_uploader("Import Expenses", type=["json"])
    if uploaded and st.button("⬆️ Import", type="primary"):
        max_bytes = get_settings().app.max_import_size_bytes
        if uploaded.size > max_bytes:
            st.error("This file is too large to import.")
        else:
            try:
                imported = run_async(expense_flow.import_expenses(
                    team, member, uploaded.read().decode("utf-8"),
                ))
                st.success(f"Imported {len(imported)} expense(s).")
            except PermissionDeniedError as e:
                st.error(str(e))
            except ImportFormatError as e:
                st.error(f"Import failed: {e}")


def render_add_expense_page(expense_flow: ExpenseFlow, team: Team, member: Member):
    """Render the form for a new expense."""
    st.title("➕ Add Expense")

    col1, col2 = st.columns(2)

    with col1:
        description = st.text_input("Description *")
        amount = st.number_input(
            "Amount *",
            min_value=0.0,
            step=0.01,
            format="%.2f",
        )
        currency = st.selectbox(
            "Currency",
            options=team.settings.currency.supported,
            index=team.settings.currency.supported.index(team.primary_currency)
            if team.primary_currency in team.settings.currency.supported else 0,
        )

    with col2:
        category = st.selectbox("Category", options=EXPENSE_CATEGORIES)
        expense_date = st.date_input("Date", value=date.today())
        payer = st.selectbox(
            "Paid by",
            options=team.members,
            index=team.members.index(member) if member in team.members else 0,
            format_func=lambda m: m.name,
        )

    is_shared = st.checkbox("Shared expense")

    shares = []
    if is_shared:
        st.markdown("**Shares (%)**")
        equal = round(100 / len(team.members), 2) if team.members else 0.0
        for other in team.members:
            percent = st.number_input(
                other.name,
                min_value=0.0,
                max_value=100.0,
                value=equal,
                step=1.0,
                key=f"share-{other.id}",
            )
            shares = apply_share(shares, team, other.id, percent, amount)

    expense = Expense(
        description=description,
        amount=amount,
        currency=currency,
        category=category,
        date=datetime.combine(expense_date, datetime.min.time()),
        paid_by_id=payer.id,
        paid_by=payer.name,
        is_shared=is_shared,
        shares=shares,
    )

    if st.button("✅ Save Expense", type="primary"):
        try:
            saved = run_async(expense_flow.create_expense(
                team, member, expense,
                correlation_id=create_correlation_id(),
            ))
            st.success(
                f"Saved {saved.description}: "
                f"{format_currency(saved.amount, saved.currency)}"
            )
        except PermissionDeniedError as e:
            st.error(str(e))
        except ExpenseValidationError as e:
            st.error(str(e))


def render_groceries_page(grocery_flow: GroceryFlow, team: Team, member: Member):
    """Render the team's grocery lists."""
    st.title("🛒 Groceries")

    lists = run_async(grocery_flow.list_lists(team))
    can_manage = can_manage_content(team, member, ContentType.GROCERY)

    if st.button("➕ New List"):
        run_async(grocery_flow.create_list(team, member))
        st.rerun()

    if not lists:
        st.info("No grocery lists yet. Create one to get started.")
        return

    active = st.selectbox(
        "List",
        options=lists,
        format_func=lambda l: f"{l.name} ({l.open_count} open)",
    )

    if can_manage:
        with st.expander("Rename list"):
            new_name = st.text_input("List name", value=active.name, key=f"rename-{active.id}")
            if st.button("Save name", key=f"save-name-{active.id}"):
                run_async(grocery_flow.rename_list(team, member, active.id, new_name))
                st.rerun()

    with st.form("add-item", clear_on_submit=True):
        col1, col2, col3 = st.columns([3, 1, 1])
        with col1:
            name = st.text_input("Item *")
        with col2:
            quantity = st.number_input("Quantity", min_value=0.0, value=1.0, step=1.0)
        with col3:
            unit = st.text_input("Unit", value="unit")
        notes = st.text_input("Notes")
        if st.form_submit_button("Add Item"):
            if not name.strip():
                st.error("Please enter an item name.")
            else:
                try:
                    run_async(grocery_flow.add_item(
                        team, member, active.id, name,
                        quantity=quantity, unit=unit, notes=notes,
                    ))
                    st.rerun()
                except PermissionDeniedError as e:
                    st.error(str(e))

    st.markdown("---")

    for item in active.items:
        col1, col2 = st.columns([5, 1])
        with col1:
            label = f"{item.name} · {item.quantity:g} {item.unit}"
            if item.notes:
                label += f" · {item.notes}"
            st.checkbox(
                label,
                value=item.completed,
                key=f"item-{item.id}",
                disabled=not can_manage,
                on_change=lambda item_id=item.id: run_async(
                    grocery_flow.toggle_item(team, member, active.id, item_id)
                ),
            )
            st.caption(f"Added by {item.added_by or 'unknown'}")
        with col2:
            if can_manage and st.button("🗑️", key=f"delete-item-{item.id}"):
                try:
                    run_async(grocery_flow.delete_item(team, member, active.id, item.id))
                    st.rerun()
                except NotFoundError:
                    st.rerun()


def render_calendar_page(event_flow: EventFlow, team: Team, member: Member):
    """Render the team calendar with ICS export."""
    st.title("📅 Calendar")

    events = run_async(event_flow.list_events(team))

    with st.expander("➕ Add Event"):
        with st.form("add-event", clear_on_submit=True):
            title = st.text_input("Title *")
            description = st.text_area("Description")
            col1, col2 = st.columns(2)
            with col1:
                event_date = st.date_input("Date", value=date.today())
            with col2:
                event_time = st.time_input("Time")
            others = st.multiselect(
                "Attendees",
                options=[m for m in team.members if m.id != member.id],
                format_func=lambda m: m.name,
            )
            if st.form_submit_button("Add Event"):
                if not title.strip():
                    st.error("Event title is required.")
                else:
                    attendees = [member, *others]
                    run_async(event_flow.create_event(team, member, CalendarEvent(
                        title=title,
                        description=description or None,
                        date=datetime.combine(event_date, datetime.min.time()),
                        time=event_time.strftime("%H:%M"),
                        attendees=[m.name for m in attendees],
                        attendee_ids=[m.email for m in attendees if m.email],
                    )))
                    st.rerun()

    if not events:
        st.info("No events yet.")
        return

    filename, document = run_async(event_flow.export_calendar(team))
    st.download_button(
        "⬇️ Export Calendar",
        data=document,
        file_name=filename,
        mime="text/calendar",
    )

    st.markdown("---")

    for event in events:
        st.markdown(
            f"**{event.title}** · {event.starts_at.strftime('%d %B %Y %H:%M')}"
        )
        if event.description:
            st.caption(event.description)
        if event.attendees:
            st.caption("With " + ", ".join(event.attendees))

        col1, col2 = st.columns(2)
        with col1:
            event_file, event_document = event_flow.export_event(team, event)
            st.download_button(
                "⬇️ .ics",
                data=event_document,
                file_name=event_file,
                mime="text/calendar",
                key=f"ics-{event.id}",
            )
        with col2:
            if can_manage_content(team, member, ContentType.EVENTS, event.added_by_id):
                if st.button("🗑️ Delete", key=f"delete-event-{event.id}"):
                    run_async(event_flow.delete_event(team, member, event.id))
                    st.rerun()


def render_team_settings_page(team_flow: TeamFlow, team: Team, member: Member):
    """Render team details, content policies and member administration."""
    st.title("👥 Team Settings")

    if not can_manage_team_settings(team, member):
        st.error("You don't have permission to view the team settings.")
        return

    with st.form("team-details"):
        name = st.text_input("Team name", value=team.name)
        description = st.text_area("Description", value=team.description or "")
        if st.form_submit_button("Save"):
            try:
                run_async(team_flow.update_details(team, member, name, description))
                st.success("Team updated.")
                st.rerun()
            except ValueError as e:
                st.error(str(e))

    st.markdown("### Content Management")
    policies = [policy.value for policy in ContentPolicy]
    for content_type in ContentType:
        current = team.settings.policy_for(content_type)
        choice = st.selectbox(
            f"{content_type.value.title()} managed by",
            options=policies,
            index=policies.index(current) if current in policies else 0,
            key=f"policy-{content_type.value}",
        )
        if choice != current:
            run_async(team_flow.set_content_policy(team, member, content_type, choice))
            st.rerun()

    st.markdown("### Members")
    for other in team.members:
        col1, col2, col3 = st.columns([3, 2, 1])
        with col1:
            st.markdown(f"**{other.name}** ({other.role.value})")
        with col2:
            if can_change_member_role(member, other):
                new_role = Role.MEMBER if other.role == Role.ADMIN else Role.ADMIN
                if st.button(f"Make {new_role.value}", key=f"role-{other.id}"):
                    run_async(team_flow.change_member_role(team, member, other.id, new_role))
                    st.rerun()
        with col3:
            if can_remove_member(member, other) and other.id != member.id:
                if st.button("Remove", key=f"remove-{other.id}"):
                    run_async(team_flow.remove_member(team, member, other.id))
                    st.rerun()


def render_settings_page(audit_logger: AuditLogger, team: Team):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Team")
    st.markdown(f"**Name:** {team.name}")
    st.markdown(f"**Primary currency:** {team.primary_currency}")
    for content_type in ContentType:
        st.markdown(
            f"**{content_type.value.title()} managed by:** "
            f"{team.settings.policy_for(content_type)}"
        )

    st.markdown("---")
    st.markdown("### Recent Activity")
    events = run_async(audit_logger.recent_events(team.id, limit=20))
    if not events:
        st.caption("No recorded activity.")
    for event in events:
        st.markdown(
            f"- `{event.timestamp.strftime('%Y-%m-%d %H:%M')}` {event.description}"
        )

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
