"""
Venture エンティティモデル

候補プールの装飾・絞り込みにのみ使用します。
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


DEFAULT_VENTURE_COLOR = "#6b7280"


class Venture(BaseModel):
    """ベンチャー（プロジェクト群）"""
    id: str = Field(..., description="ベンチャーID")
    name: str = Field(..., description="名称")
    color: Optional[str] = Field(None, description="表示色")
    icon: Optional[str] = Field(None, description="アイコン")

    @property
    def display_color(self) -> str:
        """表示色（未設定時はグレー）"""
        return self.color or DEFAULT_VENTURE_COLOR

    @property
    def display_name(self) -> str:
        """アイコン付き表示名"""
        if self.icon:
            return f"{self.icon} {self.name}"
        return self.name

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Venture":
        """辞書から Venture インスタンスを作成"""
        return cls(**data)
