from fastapi import APIRouter

from salesapi.api.deps import IdDep, PageDep, RunnerDep
from salesapi.models import Employee, EmployeeWithRecipient
from salesapi.queries import QueryName

router = APIRouter(tags=["employees"])


@router.get("/employees", response_model=list[Employee])
async def get_employees(runner: RunnerDep, page: PageDep) -> list[Employee]:
    return await runner.run(QueryName.LIST_EMPLOYEES, page)


@router.get("/employee-with-recipient", response_model=EmployeeWithRecipient | None)
async def get_employee_with_recipient(
    runner: RunnerDep, params: IdDep
) -> EmployeeWithRecipient | None:
    """Employee plus recipient_* columns of the employee it reports to (all null if none)."""
    return await runner.run(QueryName.EMPLOYEE_WITH_RECIPIENT, params)
