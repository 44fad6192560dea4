# tests/unit/test_logging.py
import logging

from flask import g

from tenantguard.config import TenantContextFilter
from tenantguard.core.principal import Principal


def make_record():
    return logging.LogRecord("tenantguard", logging.INFO, __file__, 1, "message", None, None)


def test_record_outside_request_has_no_tenant():
    record = make_record()
    assert TenantContextFilter().filter(record)
    assert record.tenant_id == "NO_TENANT"


def test_record_carries_principal_tenant(app):
    with app.test_request_context():
        g.principal = Principal(id="u1", tenant_id="t1")
        record = make_record()
        TenantContextFilter().filter(record)
    assert record.tenant_id == "t1"
