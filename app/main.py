"""
Streamlit Frontend for GEL Ledger

Converts foreign-currency income to Georgian Lari at the official NBG
rate of the day and keeps a per-user ledger with year-to-date totals.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Explicit confirmation before anything destructive
3. Clear error messages in simple language
4. The ledger is always re-read after a change (no stale tables)

The filter/sort state lives in st.session_state for the length of a
session and is passed explicitly to the filter functions.
"""

import asyncio
from datetime import date

import streamlit as st

from gel_ledger.audit import create_correlation_id
from gel_ledger.config import get_settings, validate_all_settings
from gel_ledger.ledger import (
    InvalidCSVFormatError,
    apply_filters,
    export_csv,
    export_filename,
    format_currency,
    get_currency_symbol,
    import_csv,
    precalculate_all_ytd,
    sort_transactions,
    summarize,
    unit_rate,
)
from gel_ledger.models import (
    ALL,
    DeletionOutcome,
    FilterSortState,
    SortColumn,
    SortDirection,
    User,
    build_user_lookup,
)
from gel_ledger.orchestrator import (
    AppComponents,
    ConversionInputError,
    create_app_components,
)
from gel_ledger.services.rates import CurrencyNotFoundError, RateSourceError
from gel_ledger.services.storage import QuotaExceededError, StorageError
from gel_ledger.validation import ERROR_MESSAGES


# Page configuration
st.set_page_config(
    page_title="GEL Ledger",
    page_icon="₾",
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
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


SORT_LABELS = {
    SortColumn.DATE: "Date",
    SortColumn.USER: "User",
    SortColumn.CURRENCY: "Currency",
    SortColumn.AMOUNT: "Amount",
    SortColumn.GEL: "GEL",
    SortColumn.YTD: "YTD",
}

COLLAPSIBLE_SECTIONS = {
    "converter": "Converter",
    "filters": "Filters",
    "import_export": "Import / Export",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def session_confirm(message: str) -> bool:
    """Confirmation gate: the user ticks the checkbox next to the action."""
    return bool(st.session_state.get("confirmed", False))


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    return create_app_components(confirm=session_confirm)


def show_storage_error(error: StorageError):
    if isinstance(error, QuotaExceededError):
        st.error(ERROR_MESSAGES["QUOTA_EXCEEDED"])
    else:
        st.error(f"Could not save: {error}")


def main():
    """Main application entry point."""
    components = get_components()

    if "filter_state" not in st.session_state:
        st.session_state.filter_state = FilterSortState()

    st.sidebar.title("₾ GEL Ledger")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["💱 Convert", "📒 Transactions", "👥 Users", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How to use:**
        1. Pick the date and currency of the income
        2. Enter the amount and convert
        3. Save it to the ledger to track your YTD income
        """
    )

    if page == "💱 Convert":
        render_convert_page(components)
    elif page == "📒 Transactions":
        render_transactions_page(components)
    elif page == "👥 Users":
        render_users_page(components)
    elif page == "⚙️ Settings":
        render_settings_page(components)


def render_convert_page(components: AppComponents):
    """Render the converter."""
    st.title("💱 Convert to GEL")
    settings = get_settings().ledger
    prefs = components.preferences

    with st.expander("Converter", expanded=not prefs.is_collapsed("converter")):
        value_date = st.date_input("Date", value=date.today(), max_value=date.today())

        codes = [settings.local_currency_code]
        try:
            currencies = run_async(components.rate_service.get_currencies(value_date))
            codes += sorted(c.code for c in currencies)
        except RateSourceError as e:
            st.warning(f"{ERROR_MESSAGES['API_ERROR']} ({e})")

        col1, col2 = st.columns(2)
        with col1:
            currency_code = st.selectbox(
                "Currency",
                options=codes,
                format_func=lambda code: f"{get_currency_symbol(code)} {code}",
            )
        with col2:
            amount = st.number_input("Amount", min_value=0.0, value=0.0, step=100.0)

        users = components.store.load_users()
        user = st.selectbox("User", options=users, format_func=lambda u: u.name)
        comment = st.text_input("Comment", placeholder="Optional note")

        col1, col2 = st.columns(2)
        convert_clicked = col1.button("🔍 Convert")
        save_clicked = col2.button("💾 Convert & Save", type="primary")

    if not (convert_clicked or save_clicked):
        return

    try:
        result = run_async(components.conversion_flow.convert(
            value_date,
            currency_code,
            amount,
            record=save_clicked,
            user_id=user.id if user else None,
            comment=comment,
            correlation_id=create_correlation_id(),
        ))
    except ConversionInputError as e:
        for issue in e.validation.issues:
            st.error(issue.message)
        return
    except CurrencyNotFoundError:
        st.error(ERROR_MESSAGES["CURRENCY_NOT_FOUND"])
        return
    except RateSourceError as e:
        st.error(f"{ERROR_MESSAGES['API_ERROR']} ({e})")
        return
    except StorageError as e:
        show_storage_error(e)
        return

    rate = result.currency
    st.markdown(f"""
    <div class="success-box">
        <p>{format_currency(result.amount)} {rate.code} on {result.value_date.isoformat()}</p>
        <p class="big-number">₾ {result.formatted}</p>
        <p>Rate: {rate.rate} GEL per {rate.quantity:g} {rate.code}
        ({unit_rate(rate.rate, rate.quantity):.4f} GEL per 1 {rate.code})</p>
    </div>
    """, unsafe_allow_html=True)

    if save_clicked:
        if result.transaction:
            st.success("✅ Saved to the ledger.")
        else:
            st.warning("The conversion was not saved.")


def render_filters(components: AppComponents, users: list[User], currency_codes: list[str]):
    """Filter widgets; writes the new FilterSortState to the session."""
    state: FilterSortState = st.session_state.filter_state
    prefs = components.preferences

    with st.expander("Filters", expanded=not prefs.is_collapsed("filters")):
        col1, col2, col3, col4 = st.columns(4)
        user_options = [ALL] + [u.id for u in users]
        names = build_user_lookup(users)
        with col1:
            user_id = st.selectbox(
                "User",
                options=user_options,
                index=user_options.index(state.user_id) if state.user_id in user_options else 0,
                format_func=lambda uid: "All users" if uid == ALL else names[uid].name,
            )
        currency_options = [ALL] + currency_codes
        with col2:
            currency_code = st.selectbox(
                "Currency",
                options=currency_options,
                index=(
                    currency_options.index(state.currency_code)
                    if state.currency_code in currency_options else 0
                ),
                format_func=lambda code: "All currencies" if code == ALL else code,
            )
        with col3:
            date_from = st.date_input("From", value=state.date_from)
        with col4:
            date_to = st.date_input("To", value=state.date_to)

        sort_cols = st.columns(len(SORT_LABELS))
        for col, (column, label) in zip(sort_cols, SORT_LABELS.items()):
            arrow = ""
            if column == state.sort_column:
                arrow = " ▼" if state.sort_direction == SortDirection.DESC else " ▲"
            if col.button(f"{label}{arrow}", key=f"sort_{column.value}"):
                state = state.toggle_sort(column)

    st.session_state.filter_state = state.model_copy(update={
        "user_id": user_id,
        "currency_code": currency_code,
        "date_from": date_from or None,
        "date_to": date_to or None,
    })


def render_transactions_page(components: AppComponents):
    """Render the ledger table with filters, totals and CSV tools."""
    st.title("📒 Transactions")
    store = components.store

    users = store.load_users()
    transactions = store.load_transactions()
    lookup = build_user_lookup(users)

    render_filters(components, users, sorted({tx.currency_code for tx in transactions}))
    state: FilterSortState = st.session_state.filter_state

    # YTD is always computed over the whole ledger, never the filtered view
    ytd = precalculate_all_ytd(transactions)
    visible = sort_transactions(
        apply_filters(transactions, state),
        state,
        user_names={uid: user.name for uid, user in lookup.items()},
        ytd=ytd,
    )

    if not visible:
        st.info("📋 No transactions yet. Use the 'Convert' page to add your first one.")
    else:
        st.dataframe(
            [
                {
                    "Date": tx.value_date.isoformat(),
                    "User": lookup[tx.user_id].name if tx.user_id in lookup else tx.user_id,
                    "Currency": tx.currency_code,
                    "Amount": format_currency(tx.amount),
                    "GEL": format_currency(tx.converted_gel),
                    "YTD": format_currency(ytd.get(tx.id, 0.0)),
                    "Comment": tx.comment,
                }
                for tx in visible
            ],
            use_container_width=True,
            hide_index=True,
        )

    totals = summarize(visible)
    st.markdown(
        f"**{totals['count']} transaction(s)** · Total: **₾ {format_currency(totals['total_gel'])}**"
    )

    if visible:
        st.markdown("---")
        st.markdown("### Edit a transaction")
        selected = st.selectbox(
            "Transaction",
            options=visible,
            format_func=lambda tx: (
                f"{tx.value_date.isoformat()} · {tx.currency_code} "
                f"{format_currency(tx.amount)} · {tx.comment or 'no comment'}"
            ),
        )
        new_comment = st.text_input("Comment", value=selected.comment, key=f"comment_{selected.id}")
        col1, col2 = st.columns(2)
        try:
            if col1.button("💾 Save comment"):
                store.update_comment(selected.id, new_comment)
                st.rerun()
            if col2.button("🗑️ Delete transaction"):
                store.delete_transaction(selected.id)
                st.rerun()
        except StorageError as e:
            show_storage_error(e)

    render_import_export(components, visible, lookup, ytd)

    st.markdown("---")
    st.session_state.confirmed = st.checkbox(
        "I understand this deletes ALL transactions", key="confirm_clear_transactions",
    )
    if st.button("Clear all transactions"):
        try:
            if store.clear_all_transactions():
                st.rerun()
            else:
                st.warning("Tick the checkbox to confirm.")
        except StorageError as e:
            show_storage_error(e)


def render_import_export(components: AppComponents, visible, lookup, ytd):
    prefs = components.preferences
    with st.expander("Import / Export", expanded=not prefs.is_collapsed("import_export")):
        st.download_button(
            "⬇️ Export visible rows as CSV",
            data=export_csv(visible, users=lookup, ytd=ytd, audit_logger=components.audit_logger),
            file_name=export_filename(date.today()),
            mime="text/csv",
        )

        uploaded = st.file_uploader("Import CSV", type=["csv"])
        if uploaded and st.button("⬆️ Import"):
            try:
                result = import_csv(
                    uploaded.getvalue().decode("utf-8"),
                    components.store,
                    audit_logger=components.audit_logger,
                )
            except InvalidCSVFormatError:
                st.error(ERROR_MESSAGES["INVALID_CSV"])
                return
            except UnicodeDecodeError:
                st.error(ERROR_MESSAGES["INVALID_CSV"])
                return
            except StorageError as e:
                show_storage_error(e)
                return
            st.success(
                f"Imported {result.imported} transaction(s), "
                f"skipped {result.skipped_duplicates} duplicate(s), "
                f"created {result.created_users} user(s)."
            )
            if result.invalid_rows:
                st.warning(f"{result.invalid_rows} invalid row(s) were skipped.")


def render_users_page(components: AppComponents):
    """Render user management."""
    st.title("👥 Users")
    store = components.store
    default_user_id = get_settings().ledger.default_user_id

    users = store.load_users()
    st.dataframe(
        [{"Name": u.name, "Taxpayer ID": u.taxpayer_id, "ID": u.id} for u in users],
        use_container_width=True,
        hide_index=True,
    )

    st.markdown("### Add user")
    with st.form("add_user", clear_on_submit=True):
        name = st.text_input("Name")
        taxpayer_id = st.text_input("Taxpayer ID")
        if st.form_submit_button("➕ Add"):
            try:
                if store.create_user(name, taxpayer_id) is None:
                    st.error("Please enter a name.")
                else:
                    st.rerun()
            except StorageError as e:
                show_storage_error(e)

    st.markdown("### Edit user")
    user = st.selectbox("User", options=users, format_func=lambda u: f"{u.name} ({u.id})")
    if user is None:
        return

    new_name = st.text_input("Name", value=user.name, key=f"name_{user.id}")
    new_taxpayer_id = st.text_input("Taxpayer ID", value=user.taxpayer_id, key=f"tax_{user.id}")
    st.session_state.confirmed = st.checkbox(
        "Also delete this user's transactions", key=f"confirm_delete_{user.id}",
    )

    col1, col2 = st.columns(2)
    try:
        if col1.button("💾 Save user"):
            updated = user.model_copy(update={"name": new_name.strip(), "taxpayer_id": new_taxpayer_id.strip()})
            if store.update_user(updated):
                st.rerun()
            else:
                st.error("Please enter a name.")
        if col2.button("🗑️ Delete user", disabled=user.id == default_user_id):
            outcome = store.delete_user(user.id)
            if outcome == DeletionOutcome.DELETED:
                st.rerun()
            elif outcome == DeletionOutcome.CANCELLED:
                st.warning("This user has transactions. Tick the checkbox to delete them too.")
            elif outcome == DeletionOutcome.BLOCKED_LAST_USER:
                st.error("The last user cannot be deleted.")
            elif outcome == DeletionOutcome.BLOCKED_DEFAULT_USER:
                st.error("The default user cannot be deleted.")
    except StorageError as e:
        show_storage_error(e)


def render_settings_page(components: AppComponents):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")
    status = validate_all_settings()
    for name in ("ledger", "rates", "storage", "app"):
        if status.get(name, False):
            st.success(f"✅ {name.title()} settings - OK")
        else:
            st.error(f"❌ {name.title()} settings - {status.get(f'{name}_error', 'invalid')}")

    st.markdown("---")
    st.markdown("### Layout")
    prefs = components.preferences
    for section, label in COLLAPSIBLE_SECTIONS.items():
        collapsed = st.checkbox(
            f"Collapse '{label}' by default",
            value=prefs.is_collapsed(section),
            key=f"collapsed_{section}",
        )
        if collapsed != prefs.is_collapsed(section):
            prefs.set_collapsed(section, collapsed)

    st.markdown("---")
    st.markdown("### Exchange rates")
    if st.button("Clear cached rates"):
        removed = components.rate_service.clear_rate_cache()
        st.success(f"Removed {removed} cached day(s).")

    st.markdown("---")
    st.markdown("### Danger zone")
    st.session_state.confirmed = st.checkbox(
        "I understand this deletes ALL users and ALL transactions", key="confirm_reset",
    )
    if st.button("Reset users"):
        try:
            if components.store.delete_all_users():
                st.success("Ledger reset.")
            else:
                st.warning("Tick the checkbox to confirm.")
        except StorageError as e:
            show_storage_error(e)

    with st.expander("🔍 Recent activity"):
        for event in components.audit_logger.recent_events(limit=20):
            st.markdown(f"`{event['timestamp']}` {event['description']}")


if __name__ == "__main__":
    main()
