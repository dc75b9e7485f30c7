"""
Derived review text: summary, recommendations and the fix checklist.

These are pure functions of a ReviewResult; ReviewResult.complete()
calls them so the derived fields always reflect the final issue set.
"""

from typing import Dict, List

from ..models.review import Category, ReviewResult, Severity

# Score boundaries for the summary verdict
GOOD_SCORE = 80
FAIR_SCORE = 60
# Below this score a review process is recommended
PROCESS_SCORE = 70
# Clean projects larger than this are nudged toward more tests
LARGE_PROJECT_FILES = 10

CHECKLIST_BUCKETS = {
    Severity.CRITICAL: "required",
    Severity.HIGH: "required",
    Severity.MEDIUM: "recommended",
    Severity.LOW: "optional",
    Severity.INFO: "optional",
}


def generate_summary(result: ReviewResult) -> str:
    """
    One-paragraph summary of a review.

    Args:
        result: Review result with its final issue set

    Returns:
        Summary text with counts, score and a verdict
    """
    score = result.calculate_score()
    critical = result.issues_by_severity.get(Severity.CRITICAL.value, 0)
    high = result.issues_by_severity.get(Severity.HIGH.value, 0)

    summary = (
        f"Reviewed {result.files_reviewed} file(s), found {result.total_issues} issue(s). "
        f"Quality score: {score:.1f}/100. "
    )
    if critical > 0:
        summary += f"CRITICAL: {critical} critical issue(s) need immediate attention. "
    if high > 0:
        summary += f"WARNING: {high} high priority issue(s) should be addressed soon. "

    if result.total_issues == 0:
        summary += "Great job! No issues found."
    elif score > GOOD_SCORE:
        summary += "Code quality is good overall."
    elif score > FAIR_SCORE:
        summary += "Code quality needs some improvement."
    else:
        summary += "Code quality needs significant improvement."
    return summary


def generate_recommendations(result: ReviewResult) -> List[str]:
    """Actionable recommendations, most urgent first."""
    recommendations = []
    critical = result.issues_by_severity.get(Severity.CRITICAL.value, 0)
    security = result.issues_by_category.get(Category.SECURITY.value, 0)
    performance = result.issues_by_category.get(Category.PERFORMANCE.value, 0)

    if critical > 0:
        recommendations.append(f"Fix {critical} critical issue(s) immediately.")
    if security > 0:
        recommendations.append(
            f"Address {security} security issue(s) to prevent vulnerabilities."
        )
    if performance > 0:
        recommendations.append(
            f"Optimize {performance} performance issue(s) for better efficiency."
        )
    if result.files_reviewed > LARGE_PROJECT_FILES and result.total_issues == 0:
        recommendations.append(
            "Consider adding more comprehensive tests to maintain code quality."
        )
    if result.calculate_score() < PROCESS_SCORE:
        recommendations.append(
            "Consider implementing a code review process for all changes."
        )
    return recommendations


def create_review_checklist(result: ReviewResult) -> Dict[str, List[dict]]:
    """
    Sort issues into required, recommended and optional fixes.

    Critical and high issues are required, medium recommended, low and
    info optional.
    """
    checklist: Dict[str, List[dict]] = {"required": [], "recommended": [], "optional": []}
    for issue in result.issues:
        checklist[CHECKLIST_BUCKETS[issue.severity]].append({
            "file": issue.file_path,
            "line": issue.line,
            "description": issue.message,
            "suggestion": issue.suggestion,
            "rule": issue.rule_id,
            "severity": issue.severity.value,
        })
    return checklist
