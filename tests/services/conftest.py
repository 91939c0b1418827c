"""
Service-layer fixtures.

Provides a processed April 2024 batch of four employees:
- EMP001 Karnataka, full month, PF and TDS
- EMP002 Tamil Nadu, low wage, ESI, leaves on 2024-04-20
- EMP003 invalid PAN (fails validation)
- EMP004 Karnataka, PF/ESI opted out
"""

import pytest

from payroll_services import process_payroll


def _employee(employee_id: str, **fields):
    return {"employeeId": employee_id, "employee": {"employeeId": employee_id, **fields}}


@pytest.fixture
def payroll_batch(make_input, rule_set, clock):
    inputs = [
        make_input(**_employee("EMP001", workState="Karnataka")),
        make_input(
            **_employee("EMP002", name="Ravi Kumar", workState="Tamil Nadu", exitDate="2024-04-20"),
            salaryStructure={"basic": 12000, "hra": 4000, "allowances": 2000, "ctc": 18000},
        ),
        make_input(**_employee("EMP003", pan="INVALID")),
        make_input(
            **_employee("EMP004", workState="Karnataka", pfOptIn=False, esiApplicable=False)
        ),
    ]
    return [process_payroll(i, rule_set, clock=clock) for i in inputs]
