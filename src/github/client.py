import requests
import asyncio
from typing import Dict, Any, Optional
from src.config import Settings
from src.errors import RemoteAPIError, TransportError
from src.utils.logger import get_logger

logger = get_logger(__name__)


class GitHubClient:
    """GitHub GraphQL APIクライアント"""

    def __init__(self, settings: Settings):
        self.api_url = settings.GITHUB_API_URL
        self.timeout = settings.HTTP_TIMEOUT_SECONDS
        self.headers = {
            "Authorization": f"Bearer {settings.GITHUB_TOKEN}",
            "Content-Type": "application/json",
        }

    async def execute_query(
        self, query: str, variables: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """GraphQLクエリを実行

        リトライは行わない。失敗は呼び出し元が種類ごとに判別できる例外で返す。

        Args:
            query: GraphQLクエリ文字列
            variables: クエリ変数

        Returns:
            Dict[str, Any]: クエリ結果の data 部分

        Raises:
            TransportError: ネットワークレベルの失敗
            RemoteAPIError: HTTPエラーまたはGraphQLエラー
        """
        payload = {"query": query}
        if variables:
            payload["variables"] = variables

        # requestsは同期ライブラリなので、非同期コンテキストで実行
        loop = asyncio.get_event_loop()
        try:
            response = await loop.run_in_executor(
                None,
                lambda: requests.post(
                    self.api_url, json=payload, headers=self.headers, timeout=self.timeout
                ),
            )
        except requests.RequestException as e:
            logger.error(f"GitHub API request failed: {e}")
            raise TransportError(f"GitHub API request failed: {e}") from e

        if not response.ok:
            logger.error(f"GitHub API returned HTTP {response.status_code}")
            raise RemoteAPIError(
                f"GitHub API returned HTTP {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteAPIError(
                f"GitHub API returned invalid JSON: {response.text[:200]}",
                status_code=response.status_code,
            ) from e

        if data.get("errors"):
            logger.error(f"GraphQL errors: {data['errors']}")
            raise RemoteAPIError(
                f"GraphQL errors: {data['errors']}", status_code=response.status_code
            )

        return data.get("data") or {}
