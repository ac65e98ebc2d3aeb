"""
backend/test_rbac.py

Role to capability mapping.

Run:
    pytest backend/test_rbac.py -v
"""

from backend.rbac import Capability, effective_capabilities, has_capability


def test_admin_manages_everything_but_tenant_actions():
    caps = effective_capabilities("admin")
    assert Capability.LEASE_MANAGE.value in caps
    assert Capability.DASHBOARD_VIEW.value in caps
    assert Capability.BOOKING_CREATE.value not in caps
    assert Capability.MAINTENANCE_CREATE.value not in caps
    assert Capability.REVIEW_CREATE.value not in caps
    assert Capability.REVIEW_VIEW.value in caps
    assert len(caps) == len(Capability) - 3


def test_tenant_capabilities():
    assert effective_capabilities("tenant") == {
        "listing:view",
        "booking:create",
        "booking:view",
        "lease:view",
        "maintenance:create",
        "review:create",
    }


def test_role_is_case_insensitive_and_unknown_is_empty():
    assert effective_capabilities("ADMIN") == effective_capabilities("admin")
    assert effective_capabilities("superuser") == set()
    assert effective_capabilities("") == set()


def test_has_capability_accepts_enum_and_string():
    assert has_capability("tenant", Capability.BOOKING_CREATE)
    assert has_capability("tenant", "booking:create")
    assert not has_capability("tenant", Capability.INVOICE_MANAGE)
