"""
Expense Validation

DESIGN DECISION: Validation happens when an expense is written, in two
stages:

STAGE 1 - FIELD VALIDATION:
- Required fields present
- Positive amount
- Currency supported by the team

STAGE 2 - SHARE VALIDATION:
- Payer belongs to the team
- Shared expenses have at least one share
- Share percentages total exactly 100

IMPORTANT: Validation NEVER silently fixes issues. It reports them.
Expenses already in storage are never re-validated: the ledger takes
them as given.
"""

from household.currency import is_valid_currency_code
from household.models.expense import Expense, ValidationIssue, ValidationResult
from household.models.team import Team


# Share money amounts may drift from the expense total by rounding
SHARE_AMOUNT_TOLERANCE = 0.01


class ExpenseValidator:
    """Validates an expense against its team before it is saved."""

    def _validate_fields(
        self,
        expense: Expense,
        team: Team,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Field validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if not expense.description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
                severity="error",
            ))

        if not expense.category:
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Category is required",
                severity="error",
            ))

        if expense.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Please enter a valid amount.",
                severity="error",
                suggested_fix="The amount must be greater than zero",
            ))

        if expense.currency not in team.settings.currency.supported:
            issues.append(ValidationIssue(
                field="currency",
                issue_type="unsupported",
                message=f"Currency {expense.currency} is not supported by the team.",
                severity="error",
                suggested_fix="Add the currency in team settings or pick another one",
            ))
        elif not is_valid_currency_code(expense.currency):
            issues.append(ValidationIssue(
                field="currency",
                issue_type="unknown_currency",
                message=f"Currency {expense.currency} has no known symbol",
                severity="warning",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_shares(
        self,
        expense: Expense,
        team: Team,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Payer and share validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if team.find_member(expense.paid_by_id) is None:
            issues.append(ValidationIssue(
                field="paid_by_id",
                issue_type="unknown_member",
                message="The payer is not a member of this team",
                severity="error",
            ))

        if not expense.is_shared:
            is_valid = not any(issue.severity == "error" for issue in issues)
            return is_valid, issues

        if not expense.shares:
            issues.append(ValidationIssue(
                field="shares",
                issue_type="missing",
                message="Please add at least one share for shared expenses.",
                severity="error",
            ))
        else:
            if expense.share_total != 100:
                issues.append(ValidationIssue(
                    field="shares",
                    issue_type="invalid_total",
                    message="Total shares must equal 100%.",
                    severity="error",
                    suggested_fix=f"Shares currently add up to {expense.share_total:g}%",
                ))

            for share in expense.shares:
                if share.share < 0 or share.share > 100:
                    issues.append(ValidationIssue(
                        field="shares",
                        issue_type="invalid_value",
                        message=f"Share for {share.member_name or share.member_id} must be between 0 and 100%",
                        severity="error",
                    ))
                if team.find_member(share.member_id) is None:
                    issues.append(ValidationIssue(
                        field="shares",
                        issue_type="unknown_member",
                        message=f"{share.member_name or share.member_id} is not a member of this team",
                        severity="warning",
                    ))

            share_sum = sum(share.amount for share in expense.shares)
            if abs(share_sum - expense.amount) > SHARE_AMOUNT_TOLERANCE:
                issues.append(ValidationIssue(
                    field="shares",
                    issue_type="inconsistent",
                    message=(
                        f"Share amounts add up to {share_sum:.2f}, "
                        f"expense amount is {expense.amount:.2f}"
                    ),
                    severity="warning",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(self, expense: Expense, team: Team) -> ValidationResult:
        """
        Run both validation stages.

        Stage 2 only runs if stage 1 passes.
        """
        all_issues = []

        fields_valid, field_issues = self._validate_fields(expense, team)
        all_issues.extend(field_issues)

        shares_valid = False
        if fields_valid:
            shares_valid, share_issues = self._validate_shares(expense, team)
            all_issues.extend(share_issues)

        warnings = [
            issue.message for issue in all_issues if issue.severity == "warning"
        ]

        return ValidationResult(
            expense_id=expense.id,
            is_valid=fields_valid and shares_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Summary shown next to the expense form."""
        if result.is_valid and not result.warnings:
            return "✅ All checks passed."

        lines = []

        if result.has_errors:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
