# frontend/app.py
# RentWise – property management dashboard
#
# Run from repo root: streamlit run frontend/app.py
# Or from frontend folder: streamlit run app.py

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import pandas as pd
import requests
import streamlit as st

try:
    from frontend.config import ACTIVITY_FEED_LIMIT, ENABLE_DEBUG_UI, IS_LOCAL, get_api_base_url
except ModuleNotFoundError:
    from config import ACTIVITY_FEED_LIMIT, ENABLE_DEBUG_UI, IS_LOCAL, get_api_base_url

try:
    from frontend.auth import (
        clear_auth, get_current_user, init_auth_state, is_admin, is_authenticated, set_auth
    )
except ModuleNotFoundError:
    from auth import (
        clear_auth, get_current_user, init_auth_state, is_admin, is_authenticated, set_auth
    )

try:
    from frontend.api_client import api_request, error_detail
except ModuleNotFoundError:
    from api_client import api_request, error_detail

try:
    from frontend.status_display import (
        booking_action_buttons, lease_action_buttons, lease_term_caption, status_badge, status_label
    )
except ModuleNotFoundError:
    from status_display import (
        booking_action_buttons, lease_action_buttons, lease_term_caption, status_badge, status_label
    )


st.set_page_config(page_title="RentWise", page_icon="🏠", layout="wide")

PRIORITIES = ["Low", "Medium", "High", "Urgent"]
LISTING_STATUSES = ["Available", "Rented", "Unavailable"]
MAINTENANCE_STATUSES = ["Pending", "In Progress", "Completed", "Cancelled"]
PROFESSIONS = ["Plumber", "Electrician", "Carpenter", "Painter", "Cleaner", "Gardener", "General"]


def init_state() -> None:
    ss = st.session_state
    init_auth_state()
    ss.setdefault("nav_page", None)
    ss.setdefault("_backend_status", "unknown")
    ss.setdefault("_flash", None)


init_state()

ss = st.session_state


# --------------------------------------------------------------------
# Helpers
# --------------------------------------------------------------------

def go_to(page: str) -> None:
    st.session_state["nav_page"] = page
    st.rerun()


def flash(message: str) -> None:
    """Show `message` once after the next rerun."""
    ss["_flash"] = message


def show_flash() -> None:
    message = ss.pop("_flash", None)
    if message:
        st.success(message)


def format_money(value: Optional[float]) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "n/a"
    return f"${value:,.2f}"


def handle_api_error(resp: Optional[requests.Response], operation: str = "operation") -> None:
    """Form-level error: show the backend's detail message."""
    if resp is None or resp.status_code == 403:
        # api_request already reported it
        return
    st.error(f"{operation.capitalize()} failed: {error_detail(resp)}")


def load(path: str, what: str, params: Optional[Dict[str, Any]] = None) -> Optional[Any]:
    """GET a list/stats endpoint. List views show a generic message on failure."""
    resp = api_request("GET", path, params=params)
    if resp is None:
        return None
    if resp.status_code != 200:
        st.warning(f"Failed to load {what}.")
        if ENABLE_DEBUG_UI:
            st.code(resp.text, language="json")
        return None
    return resp.json()


def load_items(path: str, what: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    data = load(path, what, params)
    return data.get("items", []) if data else []


def items_table(items: List[Dict[str, Any]], columns: Dict[str, str], entity: Optional[str] = None) -> None:
    """Render `items` as a dataframe with renamed columns and plain-text status labels."""
    df = pd.DataFrame(items)
    for col in columns:
        if col not in df.columns:
            df[col] = None
    if entity and "status" in df.columns:
        df["status"] = df["status"].map(lambda s: status_label(entity, s))
    for money_col in ("price", "rent_amount", "amount"):
        if money_col in df.columns:
            df[money_col] = df[money_col].map(format_money)
    st.dataframe(df[list(columns)].rename(columns=columns), width="stretch", hide_index=True)


def _submit(method: str, path: str, body: Optional[Dict[str, Any]], operation: str, success: str) -> bool:
    """Send a mutation from a dialog/form. On success queue a flash message and return True."""
    resp = api_request(method, path, json=body)
    if resp is not None and resp.status_code in (200, 201, 204):
        flash(success)
        return True
    handle_api_error(resp, operation)
    return False


# --------------------------------------------------------------------
# Auth pages
# --------------------------------------------------------------------

def _store_session(resp: requests.Response) -> None:
    data = resp.json()
    set_auth(data["access_token"], data.get("user", {}))
    ss["nav_page"] = "Dashboard"
    print(f"[AUTH] Signed in as role={data.get('user', {}).get('role')}")


def render_login() -> None:
    st.title("🏠 RentWise")
    st.caption("Listings, bookings, leases, invoices and maintenance in one place.")

    login_tab, register_tab, forgot_tab = st.tabs(["Login", "Register", "Forgot password"])

    with login_tab:
        with st.form("login_form"):
            email = st.text_input("Email", key="login_email")
            password = st.text_input("Password", type="password", key="login_password")
            submitted = st.form_submit_button("Login", type="primary")
        if submitted:
            if not email or not password:
                st.error("Please enter email and password.")
            else:
                resp = api_request("POST", "/auth/login", json={"email": email, "password": password}, timeout=10)
                if resp is not None and resp.status_code == 200:
                    _store_session(resp)
                    st.rerun()
                elif resp is not None:
                    st.error(error_detail(resp, "Login failed"))

    with register_tab:
        with st.form("register_form"):
            name = st.text_input("Full name", key="register_name")
            reg_email = st.text_input("Email", key="register_email")
            reg_password = st.text_input(
                "Password", type="password", key="register_password",
                help="At least 8 characters with a letter and a digit",
            )
            role = st.radio("I am a", ["admin", "tenant"], horizontal=True, key="register_role",
                            format_func=lambda r: "Landlord / property manager" if r == "admin" else "Tenant")
            reg_submitted = st.form_submit_button("Create account", type="primary")
        if reg_submitted:
            if not name or not reg_email or not reg_password:
                st.error("Please fill in all registration fields.")
            else:
                resp = api_request(
                    "POST", "/auth/register",
                    json={"name": name, "email": reg_email, "password": reg_password, "role": role},
                    timeout=10,
                )
                if resp is not None and resp.status_code in (200, 201):
                    _store_session(resp)
                    st.rerun()
                elif resp is not None:
                    st.error(error_detail(resp, "Registration failed"))

    with forgot_tab:
        with st.form("forgot_form"):
            forgot_email = st.text_input("Account email", key="forgot_email")
            forgot_submitted = st.form_submit_button("Send reset link")
        if forgot_submitted and forgot_email:
            resp = api_request("POST", "/auth/forgot-password", json={"email": forgot_email}, timeout=20)
            if resp is not None and resp.status_code == 200:
                st.success(resp.json().get("message", "Check your inbox for a reset link."))
            elif resp is not None:
                st.error(error_detail(resp, "Could not send reset link"))


def render_reset_password(token: str) -> None:
    st.title("Reset your password")
    with st.form("reset_form"):
        new_password = st.text_input("New password", type="password", key="reset_password")
        confirm = st.text_input("Confirm new password", type="password", key="reset_confirm")
        submitted = st.form_submit_button("Reset password", type="primary")
    if not submitted:
        return
    if new_password != confirm:
        st.error("Passwords do not match.")
        return
    resp = api_request("POST", "/auth/reset-password", json={"token": token, "new_password": new_password})
    if resp is not None and resp.status_code == 200:
        st.success("Password updated. You can now log in.")
        st.query_params.clear()
        if st.button("Go to login"):
            go_to("Login")
    elif resp is not None:
        st.error(error_detail(resp, "Reset failed"))


# --------------------------------------------------------------------
# Dialogs
# --------------------------------------------------------------------

def _split_lines(text: str) -> List[str]:
    return [part.strip() for part in text.replace(",", "\n").splitlines() if part.strip()]


@st.dialog("Property", width="large")
def listing_dialog(listing: Optional[Dict[str, Any]] = None) -> None:
    editing = listing is not None
    listing = listing or {}
    key = f"listing_{listing.get('id', 'new')}"
    title = st.text_input("Title", value=listing.get("title", ""), key=f"{key}_title")
    address = st.text_input("Address", value=listing.get("address", ""), key=f"{key}_address")
    description = st.text_area("Description", value=listing.get("description", ""), key=f"{key}_desc")
    price = st.number_input("Monthly rent ($)", min_value=0.0, step=50.0,
                            value=float(listing.get("price", 0.0)), key=f"{key}_price")
    amenities = st.text_input("Amenities (comma separated)", value=", ".join(listing.get("amenities", [])),
                              key=f"{key}_amenities")
    images = st.text_area("Image URLs (one per line)", value="\n".join(listing.get("images", [])),
                          key=f"{key}_images")
    status = st.selectbox("Status", LISTING_STATUSES,
                          index=LISTING_STATUSES.index(listing.get("status", "Available")), key=f"{key}_status")

    if st.button("Save", type="primary", key=f"{key}_save"):
        body = {
            "title": title,
            "address": address,
            "description": description,
            "price": price,
            "amenities": _split_lines(amenities),
            "images": [line.strip() for line in images.splitlines() if line.strip()],
            "status": status,
        }
        if editing:
            ok = _submit("PATCH", f"/api/listings/{listing['id']}", body, "update property", "Property updated.")
        else:
            ok = _submit("POST", "/api/listings", body, "create property", "Property created.")
        if ok:
            st.rerun()


@st.dialog("Confirm delete")
def confirm_delete_dialog(path: str, label: str) -> None:
    st.write(f"Delete **{label}**? This cannot be undone.")
    cols = st.columns(2)
    if cols[0].button("Delete", type="primary", key=f"confirm_{path}"):
        if _submit("DELETE", path, None, f"delete {label}", f"Deleted {label}."):
            st.rerun()
    if cols[1].button("Keep", key=f"keep_{path}"):
        st.rerun()


@st.dialog("Renew lease")
def renew_dialog(lease: Dict[str, Any]) -> None:
    st.caption(f"{lease.get('listing_title')} · {lease.get('tenant_name')}")
    current_end = date.fromisoformat(lease["end_date"])
    start = st.date_input("New start date", value=date.fromisoformat(lease["start_date"]), key=f"renew_start_{lease['id']}")
    end = st.date_input("New end date", value=current_end + timedelta(days=365), key=f"renew_end_{lease['id']}")
    if st.button("Renew", type="primary", key=f"renew_go_{lease['id']}"):
        body = {"action": "Renew", "start_date": start.isoformat(), "end_date": end.isoformat()}
        if _submit("POST", f"/api/leases/{lease['id']}/transition", body, "renew lease", "Lease renewed."):
            st.rerun()


@st.dialog("New invoice")
def invoice_dialog(leases: List[Dict[str, Any]]) -> None:
    options = {l["id"]: f"#{l['id']} · {l.get('tenant_name')} · {l.get('listing_address')}" for l in leases}
    lease_id = st.selectbox("Lease", list(options), format_func=options.get, key="invoice_lease")
    chosen = next((l for l in leases if l["id"] == lease_id), {})
    amount = st.number_input("Amount ($)", min_value=0.0, step=50.0,
                             value=float(chosen.get("rent_amount", 0.0)), key="invoice_amount")
    due = st.date_input("Due date", value=date.today() + timedelta(days=14), key="invoice_due")
    description = st.text_input("Description (optional)", key="invoice_description",
                                help="Generated from tenant, address and amount when left blank")
    if st.button("Create invoice", type="primary", key="invoice_go"):
        body = {"lease_id": lease_id, "amount": amount, "due_date": due.isoformat()}
        if description.strip():
            body["description"] = description.strip()
        if _submit("POST", "/api/invoices", body, "create invoice", "Invoice created."):
            st.rerun()


@st.dialog("Book this property")
def booking_dialog(listing: Dict[str, Any]) -> None:
    st.caption(f"{listing['title']} · {listing['address']} · {format_money(listing['price'])}/month")
    check_in = st.date_input("Check-in", value=date.today() + timedelta(days=1), key=f"book_in_{listing['id']}")
    check_out = st.date_input("Check-out", value=date.today() + timedelta(days=181), key=f"book_out_{listing['id']}")
    guests = st.number_input("Guests", min_value=1, max_value=50, value=1, key=f"book_guests_{listing['id']}")
    if st.button("Request booking", type="primary", key=f"book_go_{listing['id']}"):
        body = {
            "listing_id": listing["id"],
            "check_in": check_in.isoformat(),
            "check_out": check_out.isoformat(),
            "guests": int(guests),
        }
        if _submit("POST", "/api/bookings", body, "book property", "Booking requested."):
            st.rerun()


@st.dialog("Report an issue")
def maintenance_dialog(listings: Dict[int, str]) -> None:
    listing_id = st.selectbox("Property", list(listings), format_func=listings.get, key="mnt_listing")
    issue = st.text_input("Issue", key="mnt_issue")
    description = st.text_area("Details", key="mnt_description")
    priority = st.selectbox("Priority", PRIORITIES, index=1, key="mnt_priority")
    if st.button("Submit", type="primary", key="mnt_go"):
        body = {"listing_id": listing_id, "issue": issue, "description": description, "priority": priority}
        if _submit("POST", "/api/maintenance", body, "report issue", "Maintenance request filed."):
            st.rerun()


@st.dialog("Update request")
def maintenance_update_dialog(item: Dict[str, Any]) -> None:
    st.caption(f"{item['issue']} · {item.get('listing_address')}")
    status = st.selectbox("Status", MAINTENANCE_STATUSES,
                          index=MAINTENANCE_STATUSES.index(item["status"]), key=f"mnt_status_{item['id']}")
    priority = st.selectbox("Priority", PRIORITIES, index=PRIORITIES.index(item["priority"]),
                            key=f"mnt_prio_{item['id']}")
    caretaker = st.text_input("Caretaker", value=item.get("caretaker") or "", key=f"mnt_caretaker_{item['id']}")
    if st.button("Save", type="primary", key=f"mnt_save_{item['id']}"):
        body = {"status": status, "priority": priority, "caretaker": caretaker}
        if _submit("PATCH", f"/api/maintenance/{item['id']}", body, "update request", "Request updated."):
            st.rerun()


@st.dialog("Add caretaker")
def caretaker_dialog() -> None:
    cols = st.columns(2)
    first_name = cols[0].text_input("First name", key="ct_first")
    surname = cols[1].text_input("Surname", key="ct_surname")
    email = st.text_input("Email", key="ct_email")
    phone_number = st.text_input("Phone number", key="ct_phone")
    profession = st.selectbox("Profession", PROFESSIONS, key="ct_profession", accept_new_options=True)
    if st.button("Add", type="primary", key="ct_go"):
        body = {"first_name": first_name, "surname": surname, "email": email,
                "phone_number": phone_number, "profession": profession}
        if _submit("POST", "/api/maintenance/caretakers", body, "add caretaker", "Caretaker added."):
            st.rerun()


@st.dialog("Assign caretaker")
def assign_dialog(item: Dict[str, Any], caretakers: List[Dict[str, Any]]) -> None:
    st.caption(f"{item['issue']} · {item.get('listing_address')}")
    names = {c["id"]: f"{c['first_name']} {c['surname']} ({c['profession']})" for c in caretakers}
    caretaker_id = st.selectbox("Caretaker", list(names), format_func=names.get, key=f"assign_ct_{item['id']}")
    if st.button("Assign", type="primary", key=f"assign_go_{item['id']}"):
        body = {"caretaker_id": caretaker_id, "maintenance_request_id": item["id"]}
        if _submit("POST", "/api/maintenance/assign", body, "assign caretaker", "Caretaker assigned."):
            st.rerun()


@st.dialog("Review your stay")
def review_dialog(places: Dict[int, str]) -> None:
    listing_id = st.selectbox("Property", list(places), format_func=places.get, key="review_listing")
    rating = st.feedback("stars", key="review_rating")
    comment = st.text_area("Comment", key="review_comment")
    if st.button("Submit", type="primary", key="review_go"):
        if rating is None:
            st.warning("Pick a star rating.")
            return
        # st.feedback stars are 0-based
        body = {"listing_id": listing_id, "rating": rating + 1, "comment": comment}
        if _submit("POST", "/api/reviews", body, "submit review", "Thanks for your review."):
            st.rerun()


# --------------------------------------------------------------------
# Admin tabs
# --------------------------------------------------------------------

def render_overview() -> None:
    overview = load("/api/dashboard/overview", "overview")
    if not overview:
        return

    cols = st.columns(4)
    cols[0].metric("Properties", overview["total_listings"],
                   delta=f"+{overview['listings_added_this_month']} this month"
                   if overview["listings_added_this_month"] else None)
    cols[1].metric("Active leases", overview["active_leases"])
    cols[2].metric("Leased", f"{overview['leased_percentage']:.1f}%")
    revenue = overview["current_month_revenue"]
    cols[3].metric(f"Revenue {revenue.get('month', '')}", format_money(revenue.get("total", 0)))

    left, right = st.columns(2)
    with left:
        st.subheader("Properties by status")
        by_status = overview["listings_by_status"]
        st.bar_chart(pd.DataFrame({"Properties": by_status}))
    with right:
        st.subheader("Invoices")
        for status, stats in overview["invoice_stats"].items():
            st.markdown(f"{status_badge('invoice', status)} {int(stats['count'])} · {format_money(stats['total'])}")

    st.subheader("Revenue, last 12 months")
    trend = load("/api/bookings/revenue/trend", "revenue trend")
    if trend:
        df = pd.DataFrame(trend)
        df["label"] = pd.Categorical(df["label"], categories=df["label"], ordered=True)
        st.line_chart(df.set_index("label")["total"].rename("Revenue"))

    st.subheader("Recent activity")
    activity = load_items("/api/activity", "activity", params={"limit": ACTIVITY_FEED_LIMIT})
    if not activity:
        st.caption("No activity yet.")
    for entry in activity:
        st.markdown(f"**{entry['action']}** · {entry['detail']}  \n:gray[{entry['created_at']}]")


def render_properties() -> None:
    head = st.columns([4, 1])
    head[0].subheader("Properties")
    if head[1].button("➕ Add property", width="stretch", key="add_listing"):
        listing_dialog()

    listings = load_items("/api/listings", "properties")
    if not listings:
        st.info("No properties yet. Add your first one.")
        return

    for listing in listings:
        with st.container(border=True):
            cols = st.columns([3, 2, 1, 1])
            cols[0].markdown(f"**{listing['title']}**  \n{listing['address']}")
            cols[0].caption(", ".join(listing.get("amenities", [])) or "No amenities listed")
            cols[1].markdown(f"{format_money(listing['price'])}/month  \n{status_badge('listing', listing['status'])}")
            if cols[2].button("Edit", key=f"edit_listing_{listing['id']}", width="stretch"):
                listing_dialog(listing)
            if cols[3].button("Delete", key=f"delete_listing_{listing['id']}", width="stretch"):
                confirm_delete_dialog(f"/api/listings/{listing['id']}", listing["title"])


def render_leases() -> None:
    head = st.columns([3, 1, 1])
    head[0].subheader("Leases")
    if head[1].button("🔄 Refresh statuses", width="stretch", key="refresh_leases"):
        resp = api_request("PATCH", "/api/leases/refresh-statuses")
        if resp is not None and resp.status_code == 200:
            st.toast(f"{resp.json()['updated']} lease(s) updated")

    stats = load("/api/leases/stats", "lease stats")
    if stats:
        cols = st.columns(len(stats["by_status"]))
        for col, (status, n) in zip(cols, stats["by_status"].items()):
            col.metric(status, n)

    status_filter = head[2].selectbox("Status", ["All", "Pending", "Active", "Expiring Soon", "Expired", "Cancelled"],
                                      key="lease_filter", label_visibility="collapsed")
    params = None if status_filter == "All" else {"status": status_filter}
    leases = load_items("/api/leases", "leases", params=params)
    if not leases:
        st.info("No leases. Create one from an accepted booking in the Bookings tab.")
        return

    for lease in leases:
        with st.container(border=True):
            cols = st.columns([3, 2, 3])
            cols[0].markdown(f"**{lease.get('listing_title')}**  \n{lease.get('tenant_name')} · {lease.get('tenant_email')}")
            cols[1].markdown(f"{status_badge('lease', lease['status'])}  \n{format_money(lease['rent_amount'])}")
            cols[1].caption(lease_term_caption(lease))
            if lease.get("renewal_count"):
                cols[1].caption(f"Renewed {lease['renewal_count']}×")

            buttons = lease_action_buttons(lease.get("allowed_actions"))
            action_cols = cols[2].columns(max(len(buttons), 1) + 1)
            for slot, (action, button) in zip(action_cols, buttons):
                if slot.button(f"{button['icon']} {button['label']}", key=f"lease_{action}_{lease['id']}",
                               type=button["type"], width="stretch"):
                    if button["needs_dates"]:
                        renew_dialog(lease)
                    elif _submit("POST", f"/api/leases/{lease['id']}/transition", {"action": action},
                                 f"{action.lower()} lease", f"Lease {button['done']}."):
                        st.rerun()
            if action_cols[-1].button("🗑️", key=f"delete_lease_{lease['id']}", help="Delete lease"):
                confirm_delete_dialog(f"/api/leases/{lease['id']}", f"lease #{lease['id']}")


def render_bookings_admin() -> None:
    head = st.columns([4, 1])
    head[0].subheader("Bookings")
    if head[1].button("🔄 Refresh statuses", width="stretch", key="refresh_bookings"):
        resp = api_request("PATCH", "/api/bookings/refresh-statuses")
        if resp is not None and resp.status_code == 200:
            st.toast(f"{resp.json()['updated']} booking(s) updated")

    bookings = load_items("/api/bookings", "bookings")
    if not bookings:
        st.info("No bookings yet.")
        return

    items_table(
        bookings,
        {"id": "#", "listing_title": "Property", "tenant_name": "Tenant", "check_in": "Check-in",
         "check_out": "Check-out", "rent_amount": "Rent", "status": "Status"},
        entity="booking",
    )

    st.markdown("#### Actions")
    for booking in bookings:
        buttons = booking_action_buttons(booking.get("allowed_actions"))
        can_lease = booking.get("lease_id") is None and booking["status"] != "Cancelled"
        if not buttons and not can_lease:
            continue
        cols = st.columns([3] + [1] * (len(buttons) + 1))
        cols[0].markdown(f"#{booking['id']} · {booking.get('listing_title')} · {booking.get('tenant_name')}")
        for slot, (action, button) in zip(cols[1:], buttons):
            if slot.button(f"{button['icon']} {button['label']}", key=f"booking_{action}_{booking['id']}",
                           type=button["type"], width="stretch"):
                if _submit("POST", f"/api/bookings/{booking['id']}/actions", {"action": action},
                           f"{action} booking", f"Booking #{booking['id']} {button['done']}."):
                    st.rerun()
        if can_lease and cols[-1].button("📝 Create lease", key=f"lease_from_{booking['id']}", width="stretch"):
            if _submit("POST", "/api/leases", {"booking_id": booking["id"]}, "create lease", "Lease created."):
                st.rerun()


def render_invoices() -> None:
    head = st.columns([4, 1])
    head[0].subheader("Invoices")
    if head[1].button("➕ New invoice", width="stretch", key="new_invoice"):
        leases = load_items("/api/leases", "leases")
        if leases:
            invoice_dialog(leases)
        else:
            st.warning("Create a lease before invoicing.")

    stats = load("/api/invoices/stats", "invoice stats")
    if stats:
        cols = st.columns(len(stats))
        for col, (status, s) in zip(cols, stats.items()):
            col.metric(status, int(s["count"]), delta=format_money(s["total"]), delta_color="off")

    invoices = load_items("/api/invoices", "invoices")
    if not invoices:
        st.info("No invoices yet.")
        return

    items_table(
        invoices,
        {"id": "#", "tenant_name": "Tenant", "listing_address": "Property", "description": "Description",
         "amount": "Amount", "due_date": "Due", "status": "Status"},
        entity="invoice",
    )
    unpaid = {i["id"]: f"#{i['id']} · {i['tenant_name']} · {format_money(i['amount'])}" for i in invoices
              if i["status"] != "Paid"}
    if unpaid:
        cols = st.columns([3, 1])
        chosen = cols[0].selectbox("Mark as paid", list(unpaid), format_func=unpaid.get, key="pay_invoice")
        if cols[1].button("💵 Mark paid", key="pay_invoice_go", width="stretch"):
            if _submit("POST", f"/api/invoices/{chosen}/pay", None, "mark invoice paid", "Invoice marked paid."):
                st.rerun()


def render_caretakers(caretakers: List[Dict[str, Any]]) -> None:
    head = st.columns([4, 1])
    head[0].markdown("#### Caretakers")
    if head[1].button("➕ Add caretaker", width="stretch", key="add_caretaker"):
        caretaker_dialog()
    if not caretakers:
        st.caption("No caretakers yet.")
        return
    for caretaker in caretakers:
        cols = st.columns([3, 3, 1])
        cols[0].markdown(f"**{caretaker['first_name']} {caretaker['surname']}** · {caretaker['profession']}")
        cols[1].caption(f"{caretaker['email']} · {caretaker['phone_number']} · "
                        f"{caretaker['open_requests']} open request(s)")
        if cols[2].button("🗑️", key=f"delete_caretaker_{caretaker['id']}", help="Remove caretaker"):
            confirm_delete_dialog(f"/api/maintenance/caretakers/{caretaker['id']}",
                                  f"{caretaker['first_name']} {caretaker['surname']}")


def render_maintenance_admin() -> None:
    st.subheader("Maintenance")
    total = load("/api/maintenance/count", "request count") or {}
    urgent = load("/api/maintenance/count-high-priority", "high priority count") or {}
    cols = st.columns(2)
    cols[0].metric("Requests", total.get("count", 0))
    cols[1].metric("Open high priority", urgent.get("count", 0))

    caretakers = load_items("/api/maintenance/caretakers", "caretakers")
    render_caretakers(caretakers)

    st.markdown("#### Requests")
    status_filter = st.selectbox("Status", ["All"] + MAINTENANCE_STATUSES, key="mnt_filter")
    params = None if status_filter == "All" else {"status": status_filter}
    requests_ = load_items("/api/maintenance", "maintenance requests", params=params)
    if not requests_:
        st.info("No maintenance requests.")
        return
    for item in requests_:
        with st.container(border=True):
            cols = st.columns([4, 2, 1])
            cols[0].markdown(f"**{item['issue']}** · {item.get('listing_title')}  \n{item.get('description') or ''}")
            cols[0].caption(f"Reported by {item.get('tenant_name')} on {item['created_at'][:10]}")
            cols[1].markdown(
                f"{status_badge('maintenance', item['status'])}  \n{status_badge('priority', item['priority'])}"
            )
            cols[1].caption(f"Caretaker: {item.get('caretaker') or 'unassigned'}")
            if cols[2].button("Update", key=f"mnt_update_{item['id']}", width="stretch"):
                maintenance_update_dialog(item)
            is_open = item["status"] in ("Pending", "In Progress")
            if caretakers and is_open and cols[2].button("Assign", key=f"mnt_assign_{item['id']}", width="stretch"):
                assign_dialog(item, caretakers)


def render_reviews() -> None:
    st.subheader("Reviews")
    feed = load("/api/reviews", "reviews")
    if not feed or not feed["items"]:
        st.info("No reviews yet.")
        return
    st.metric("Average rating", f"{feed['average_rating']:.1f} / 5", delta=f"{feed['total']} review(s)",
              delta_color="off")
    for review in feed["items"]:
        with st.container(border=True):
            stars = "★" * review["rating"] + "☆" * (5 - review["rating"])
            st.markdown(f"**{review.get('tenant_name')}** · {stars} · {review.get('listing_title')}")
            if review.get("comment"):
                st.write(review["comment"])
            st.caption(review["created_at"][:10])


def render_admin_dashboard() -> None:
    tabs = st.tabs(["📊 Overview", "🏘️ Properties", "📄 Leases", "📅 Bookings", "💵 Invoices", "🛠️ Maintenance",
                    "⭐ Reviews"])
    renderers = [
        render_overview,
        render_properties,
        render_leases,
        render_bookings_admin,
        render_invoices,
        render_maintenance_admin,
        render_reviews,
    ]
    for tab, render in zip(tabs, renderers):
        with tab:
            render()


# --------------------------------------------------------------------
# Tenant tabs
# --------------------------------------------------------------------

def render_browse() -> None:
    st.subheader("Available properties")
    listings = load_items("/api/listings/available", "properties")
    if not listings:
        st.info("Nothing available right now.")
        return
    for listing in listings:
        with st.container(border=True):
            cols = st.columns([4, 2, 1])
            if listing.get("images"):
                cols[0].image(listing["images"][0], width=240)
            cols[0].markdown(f"**{listing['title']}**  \n{listing['address']}")
            cols[0].write(listing.get("description", ""))
            cols[1].markdown(f"{format_money(listing['price'])}/month")
            cols[1].caption(", ".join(listing.get("amenities", [])))
            if cols[2].button("Book", key=f"book_{listing['id']}", type="primary", width="stretch"):
                booking_dialog(listing)


def render_tenant_stays() -> None:
    head = st.columns([4, 1])
    head[0].subheader("My bookings")
    bookings = load_items("/api/bookings", "bookings")
    places = {b["listing_id"]: b.get("listing_title") or f"Property #{b['listing_id']}" for b in bookings}
    if places and head[1].button("⭐ Leave a review", width="stretch", key="leave_review"):
        review_dialog(places)
    if bookings:
        items_table(
            bookings,
            {"listing_title": "Property", "listing_address": "Address", "check_in": "Check-in",
             "check_out": "Check-out", "rent_amount": "Rent", "status": "Status"},
            entity="booking",
        )
    else:
        st.caption("No bookings yet.")

    st.subheader("My leases")
    leases = load_items("/api/leases", "leases")
    for lease in leases:
        st.markdown(f"**{lease.get('listing_title')}** {status_badge('lease', lease['status'])}")
        st.caption(lease_term_caption(lease))
    if not leases:
        st.caption("No leases yet.")


def render_tenant_maintenance() -> None:
    head = st.columns([4, 1])
    head[0].subheader("Maintenance requests")
    bookings = load_items("/api/bookings", "bookings")
    places = {b["listing_id"]: b.get("listing_title") or f"Property #{b['listing_id']}" for b in bookings}
    if places and head[1].button("➕ Report issue", width="stretch", key="report_issue"):
        maintenance_dialog(places)

    requests_ = load_items("/api/maintenance", "maintenance requests")
    if not requests_:
        st.caption("No requests filed.")
        return
    items_table(
        requests_,
        {"listing_title": "Property", "issue": "Issue", "priority": "Priority", "caretaker": "Caretaker",
         "status": "Status"},
        entity="maintenance",
    )


def render_tenant_dashboard() -> None:
    tabs = st.tabs(["🔎 Browse", "🏠 My stays", "🛠️ Maintenance"])
    with tabs[0]:
        render_browse()
    with tabs[1]:
        render_tenant_stays()
    with tabs[2]:
        render_tenant_maintenance()


# --------------------------------------------------------------------
# Layout
# --------------------------------------------------------------------

def render_sidebar() -> None:
    with st.sidebar:
        st.markdown("## 🏠 RentWise")
        user = get_current_user() or {}
        if is_authenticated():
            st.markdown(f"**{user.get('name', '')}**  \n{user.get('email', '')}")
            st.caption("Landlord" if is_admin() else "Tenant")
            if st.button("Log out", width="stretch", key="logout_btn"):
                clear_auth()
                go_to("Login")

        if ss.get("_backend_status") in ("timeout", "connection_error", "error"):
            st.error("⚠️ Backend unreachable")
        elif ss.get("_backend_status") == "ok":
            st.success("✅ Connected")

        if ENABLE_DEBUG_UI:
            with st.expander("Debug"):
                try:
                    st.caption(f"API: {get_api_base_url() if IS_LOCAL else 'configured'}")
                except (RuntimeError, ValueError) as e:
                    st.caption(f"API: {e}")
                st.json({"nav_page": ss.get("nav_page"), "role": ss.get("role")})


def main() -> None:
    init_auth_state()

    reset_token = st.query_params.get("token")
    if reset_token and not is_authenticated():
        render_reset_password(reset_token)
        return

    if not ss.get("nav_page") or (ss["nav_page"] == "Dashboard" and not is_authenticated()):
        ss["nav_page"] = "Dashboard" if is_authenticated() else "Login"

    print(f"[ROUTING] page={ss['nav_page']} | token_present={is_authenticated()} | role={ss.get('role')}")

    render_sidebar()
    show_flash()

    if ss["nav_page"] == "Login":
        render_login()
    elif is_admin():
        render_admin_dashboard()
    else:
        render_tenant_dashboard()


if __name__ == "__main__":
    main()
