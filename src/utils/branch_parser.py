import re
from typing import Optional

# feature-<scope>-<issue number>-<slug> / fix-<scope>-<issue number>-<slug>
BRANCH_PATTERN = re.compile(
    r"^(feature|fix)-[a-z]+-(\d+)-[a-z0-9-]+$", re.IGNORECASE | re.ASCII
)


def extract_issue_number(ref: Optional[str]) -> Optional[int]:
    """ブランチ名からIssue番号を抽出

    命名規約に沿わないブランチ名は通常のケースとして扱い、Noneを返す。

    Args:
        ref: ブランチ名（create イベントの ref、または PR の head.ref）

    Returns:
        Optional[int]: Issue番号。パターンに一致しない場合、または番号が
            整数に変換できないほど長い場合はNone

    Examples:
        >>> extract_issue_number("feature-auth-42-login-form")
        42
        >>> extract_issue_number("main") is None
        True
    """
    if not ref:
        return None

    match = BRANCH_PATTERN.fullmatch(ref)
    if not match:
        return None
    try:
        return int(match.group(2))
    except ValueError:
        # 4300桁を超える数字列はintに変換できない（実在しないIssue番号）
        return None
