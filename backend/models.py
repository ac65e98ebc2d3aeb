from enum import Enum

# Enums
class UserRole(str, Enum):
    admin = "admin"
    tenant = "tenant"

class ListingStatus(str, Enum):
    available = "Available"
    rented = "Rented"
    unavailable = "Unavailable"

class BookingStatus(str, Enum):
    pending = "Pending"
    confirmed = "Confirmed"
    active = "Active"
    expired = "Expired"
    completed = "Completed"
    cancelled = "Cancelled"

class BookingAction(str, Enum):
    confirm = "confirm"
    cancel = "cancel"
    complete = "complete"

class LeaseStatus(str, Enum):
    pending = "Pending"
    active = "Active"
    expiring_soon = "Expiring Soon"
    expired = "Expired"
    cancelled = "Cancelled"

class LeaseAction(str, Enum):
    activate = "Activate"
    cancel = "Cancel"
    renew = "Renew"

class InvoiceStatus(str, Enum):
    pending = "Pending"
    overdue = "Overdue"
    paid = "Paid"

class MaintenanceStatus(str, Enum):
    pending = "Pending"
    in_progress = "In Progress"
    completed = "Completed"
    cancelled = "Cancelled"

class MaintenancePriority(str, Enum):
    low = "Low"
    medium = "Medium"
    high = "High"
    urgent = "Urgent"

class ActivityAction(str, Enum):
    create_listing = "Create Listing"
    update_listing = "Update Listing"
    delete_listing = "Delete Listing"
    create_lease = "Create Lease"
    update_lease = "Update Lease"
    delete_lease = "Delete Lease"
    update_booking = "Update Booking"
    delete_booking = "Delete Booking"
    create_invoice = "Create Invoice"
    mark_invoice_paid = "Mark Invoice Paid"
    update_maintenance = "Update Maintenance Request"
    create_caretaker = "Create Caretaker"
    delete_caretaker = "Delete Caretaker"
    assign_caretaker = "Assign Caretaker"
