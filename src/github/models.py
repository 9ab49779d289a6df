from pydantic import BaseModel
from typing import Any, Dict, Optional


class TaskItem(BaseModel):
    """GitHub Projectアイテム（Issueに紐づくもの）"""

    id: str
    issue_number: int
    title: str = ""
    url: str = ""
    status_option_id: Optional[str] = None

    @classmethod
    def from_node(cls, node: Dict[str, Any], status_field_id: str) -> Optional["TaskItem"]:
        """GraphQLのアイテムノードから生成

        Issue以外（Draft Issue、Pull Request）のアイテムはNoneを返す。

        Args:
            node: items.nodes の要素
            status_field_id: ステータスフィールドのID

        Returns:
            Optional[TaskItem]: 生成したアイテム
        """
        content = node.get("content") or {}
        if content.get("number") is None:
            return None

        status_option_id = None
        for value in (node.get("fieldValues") or {}).get("nodes") or []:
            field = (value or {}).get("field") or {}
            if field.get("id") == status_field_id:
                status_option_id = value.get("optionId")
                break

        return cls(
            id=node["id"],
            issue_number=int(content["number"]),
            title=content.get("title") or "",
            url=content.get("url") or "",
            status_option_id=status_option_id,
        )
