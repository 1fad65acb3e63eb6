from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from api.v1.models.user import User
from api.v1.schemas.auth import LinkedAccountResponse
from api.v1.schemas.user import (
    LinkAccountRequest,
    PreferencesUpdateRequest,
    ProfileResponse,
    SavingsGoalCreate,
    SavingsGoalResponse,
    SavingsPlanRequest,
)
from api.v1.responses.success_response import success_response
from api.v1.services.analytics_service import analytics_service
from api.v1.services.budget_service import budget_service
from api.v1.services.user import user_service
from api.v1.utils.dependencies import get_db

user_router = APIRouter(prefix="/user", tags=["User"])


@user_router.get("/profile", status_code=status.HTTP_200_OK)
async def get_profile(user: User = Depends(user_service.get_current_user)):
    profile = ProfileResponse(
        full_name=user.full_name,
        email=user.email,
        account_created=user.created_at,
        monthly_budget=user.monthly_budget,
        linked_accounts=[
            LinkedAccountResponse.model_validate(account)
            for account in user.linked_accounts
        ],
        savings_goals=[
            SavingsGoalResponse.model_validate(goal) for goal in user.savings_goals
        ],
        preferences=user.preferences,
    )

    return success_response(profile=profile.model_dump(by_alias=True))


@user_router.post("/savings-plan", status_code=status.HTTP_200_OK)
async def savings_plan(
    payload: SavingsPlanRequest,
    user: User = Depends(user_service.get_current_user),
    db: Session = Depends(get_db),
):
    plan = budget_service.set_monthly_budget(user, payload.monthly_budget, db)

    return success_response(
        message="Savings plan calculated successfully!", data=plan
    )


@user_router.post("/savings-goals", status_code=status.HTTP_201_CREATED)
async def create_savings_goal(
    payload: SavingsGoalCreate,
    user: User = Depends(user_service.get_current_user),
    db: Session = Depends(get_db),
):
    goal = budget_service.create_savings_goal(user, payload, db)

    return success_response(
        status_code=status.HTTP_201_CREATED,
        message="Savings goal created",
        savingsGoal=SavingsGoalResponse.model_validate(goal).model_dump(by_alias=True),
    )


@user_router.post("/link-account", status_code=status.HTTP_200_OK)
async def link_account(
    payload: LinkAccountRequest,
    user: User = Depends(user_service.get_current_user),
    db: Session = Depends(get_db),
):
    linked_account = user_service.link_account(
        user, payload.provider, payload.account_id, payload.account_name, db
    )

    return success_response(
        message=f"{payload.provider.value} account linked successfully!",
        linkedAccount=LinkedAccountResponse.model_validate(linked_account).model_dump(
            by_alias=True
        ),
    )


@user_router.delete("/unlink-account/{account_id}", status_code=status.HTTP_200_OK)
async def unlink_account(
    account_id: str,
    user: User = Depends(user_service.get_current_user),
    db: Session = Depends(get_db),
):
    linked_account = user_service.unlink_account(user, account_id, db)

    return success_response(
        message=f"{linked_account.provider.value} account unlinked successfully",
        unlinkedAccount=LinkedAccountResponse.model_validate(
            linked_account
        ).model_dump(by_alias=True),
    )


@user_router.get("/stats", status_code=status.HTTP_200_OK)
async def user_stats(
    user: User = Depends(user_service.get_current_user),
    db: Session = Depends(get_db),
):
    return success_response(stats=analytics_service.period_stats(user.id, db))


@user_router.patch("/preferences", status_code=status.HTTP_200_OK)
async def update_preferences(
    payload: PreferencesUpdateRequest,
    user: User = Depends(user_service.get_current_user),
    db: Session = Depends(get_db),
):
    user = user_service.update_preferences(user, payload.preferences, db)

    return success_response(
        message="Preferences updated successfully", preferences=user.preferences
    )
