"""
タスクストア / ベンチャーディレクトリ

外部タスクストアへの読み書きインターフェースと Firestore 実装を提供します。
スケジューラが書き込むのは割り当てフィールド（focus_date / focus_slot / day_id）のみです。
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from google.cloud import firestore
from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from ..models import Task, TaskPatch, Venture

# ログ設定
logger = logging.getLogger(__name__)

T = TypeVar('T', bound=BaseModel)


class RepositoryError(Exception):
    """リポジトリエラー基底クラス"""
    pass


class TaskNotFoundError(RepositoryError):
    """タスク未発見エラー"""
    pass


class TaskStore(ABC):
    """タスクストアインターフェース"""

    @abstractmethod
    async def list_tasks(self) -> List[Task]:
        """全タスクを取得"""
        pass

    @abstractmethod
    async def update_task(self, task_id: str, patch: TaskPatch) -> Task:
        """
        タスクの割り当てフィールドを部分更新

        Raises:
            TaskNotFoundError: タスクが存在しない
            RepositoryError: 書き込み失敗
        """
        pass


class VentureDirectory(ABC):
    """ベンチャー一覧インターフェース"""

    @abstractmethod
    async def list_ventures(self) -> List[Venture]:
        """全ベンチャーを取得"""
        pass


def _parse_documents(docs: Any, parse: Callable[[Dict[str, Any]], T], collection_name: str) -> List[T]:
    """ドキュメントをモデルに変換（不正なドキュメントはスキップ）"""
    results = []
    for doc in docs:
        data = doc.to_dict() or {}
        data.setdefault("id", doc.id)
        try:
            results.append(parse(data))
        except ModelValidationError as e:
            logger.warning(f"{collection_name}ドキュメントの変換をスキップ: {doc.id} - {e}")
    return results


class FirestoreTaskStore(TaskStore):
    """Firestore タスクストア"""

    def __init__(
        self,
        firestore_client: Optional[firestore.AsyncClient] = None,
        collection_name: str = "tasks",
        project_id: Optional[str] = None
    ):
        """
        タスクストアを初期化

        Args:
            firestore_client: Firestore非同期クライアント
            collection_name: Firestoreコレクション名
            project_id: GCPプロジェクトID（クライアント未指定時）
        """
        self.collection_name = collection_name
        self.db = firestore_client or firestore.AsyncClient(project=project_id)
        self.collection = self.db.collection(collection_name)

    async def list_tasks(self) -> List[Task]:
        """全タスクを取得"""
        try:
            docs = await self.collection.get()
        except Exception as e:
            logger.error(f"{self.collection_name}一覧取得エラー: {e}")
            raise RepositoryError(f"一覧取得に失敗しました: {e}")

        return _parse_documents(docs, Task.from_dict, self.collection_name)

    async def update_task(self, task_id: str, patch: TaskPatch) -> Task:
        """タスクの割り当てフィールドを部分更新"""
        try:
            doc_ref = self.collection.document(task_id)
            if not (await doc_ref.get()).exists:
                raise TaskNotFoundError(f"ID {task_id} のタスクが見つかりません")

            await doc_ref.update(patch.to_dict())
            logger.info(f"{self.collection_name}ドキュメントを更新: {task_id}")

            doc = await doc_ref.get()
            data = doc.to_dict() or {}
            data.setdefault("id", task_id)
            return Task.from_dict(data)

        except TaskNotFoundError:
            raise
        except Exception as e:
            logger.error(f"{self.collection_name}ドキュメント更新エラー: {e}")
            raise RepositoryError(f"更新に失敗しました: {e}")


class FirestoreVentureDirectory(VentureDirectory):
    """Firestore ベンチャーディレクトリ"""

    def __init__(
        self,
        firestore_client: Optional[firestore.AsyncClient] = None,
        collection_name: str = "ventures",
        project_id: Optional[str] = None
    ):
        self.collection_name = collection_name
        self.db = firestore_client or firestore.AsyncClient(project=project_id)
        self.collection = self.db.collection(collection_name)

    async def list_ventures(self) -> List[Venture]:
        """全ベンチャーを取得"""
        try:
            docs = await self.collection.get()
        except Exception as e:
            logger.error(f"{self.collection_name}一覧取得エラー: {e}")
            raise RepositoryError(f"一覧取得に失敗しました: {e}")

        return _parse_documents(docs, Venture.from_dict, self.collection_name)
