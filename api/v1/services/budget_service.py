from decimal import Decimal
from sqlalchemy.orm import Session
from api.v1.models.savings_goal import SavingsGoal
from api.v1.models.user import User
from api.v1.schemas.user import SavingsGoalCreate
from api.v1.utils.helpers import round_half_up, to_utc
from api.v1.utils.logger import get_logger

logger = get_logger("budget_service")

# (title, share of budget in percent, priority, description)
SAVINGS_ALLOCATIONS = [
    ("Emergency Fund", 20, "high", "Build a safety net for unexpected expenses"),
    ("Investment Portfolio", 15, "medium", "Grow your wealth with smart investments"),
    ("Entertainment & Leisure", 10, "low", "Enjoy life while staying within budget"),
    ("Health & Wellness", 8, "medium", "Invest in your physical and mental health"),
    ("Education & Skills", 7, "medium", "Continuous learning for career growth"),
]


class BudgetService:
    def __init__(self):
        pass

    def build_savings_plan(self, monthly_budget: Decimal) -> dict:
        monthly_budget = Decimal(monthly_budget)

        suggestions = [
            {
                "title": title,
                "amount": round_half_up(monthly_budget * percentage / 100),
                "percentage": percentage,
                "description": description,
                "priority": priority,
            }
            for title, percentage, priority, description in SAVINGS_ALLOCATIONS
        ]

        total_suggested = sum(
            (suggestion["amount"] for suggestion in suggestions), Decimal("0")
        )
        utilization = (
            int(round_half_up(total_suggested / monthly_budget * 100))
            if monthly_budget > 0
            else 0
        )

        return {
            "monthlyBudget": monthly_budget,
            "suggestions": suggestions,
            "totalSuggested": total_suggested,
            "remainingBudget": monthly_budget - total_suggested,
            "utilizationPercentage": utilization,
        }

    def set_monthly_budget(
        self, user: User, monthly_budget: Decimal, db: Session
    ) -> dict:
        user.monthly_budget = monthly_budget
        db.commit()

        logger.info(
            "Monthly budget updated",
            extra={"user_id": user.id, "monthly_budget": str(monthly_budget)},
        )

        return self.build_savings_plan(monthly_budget)

    def create_savings_goal(
        self, user: User, data: SavingsGoalCreate, db: Session
    ) -> SavingsGoal:
        goal = SavingsGoal(
            user_id=user.id,
            title=data.title,
            target_amount=data.target_amount,
            current_amount=data.current_amount,
            deadline=to_utc(data.deadline) if data.deadline else None,
        )

        db.add(goal)
        db.commit()
        db.refresh(goal)

        logger.info(
            "Savings goal created",
            extra={
                "savings_goal_id": goal.id,
                "user_id": user.id,
                "target_amount": str(goal.target_amount),
            },
        )

        return goal


budget_service = BudgetService()
