"""Domain exceptions."""

from enum import Enum


class ValidationReason(str, Enum):
    """Why a party was rejected before any mutation."""

    MISSING_PARTY = "missing_party"
    MISSING_ACCOUNT = "missing_account"
    UNEXPECTED_ACCOUNT = "unexpected_account"


class PartyValidationError(ValueError):
    """パーティが対象カテゴリの条件を満たさない場合に発生する例外

    ボットのパーティにアカウント ID がない場合や、
    アグリゲーションチャンネルにアカウント ID がある場合などに発生する。
    """

    def __init__(self, reason: ValidationReason, message: str = "") -> None:
        """初期化

        Args:
            reason: 検証エラーの理由
            message: エラーメッセージ（オプション）
        """
        self.reason = reason
        super().__init__(message or f"Invalid party: {reason.value}")


class ConversationNotAccessibleError(Exception):
    """会話にアクセスできない場合に発生する例外

    ボットがチャンネルから退出した場合や、
    チャンネルがアーカイブされた場合などに発生する。
    """

    def __init__(self, conversation_id: str, message: str = "") -> None:
        """初期化

        Args:
            conversation_id: アクセスできない会話のID
            message: エラーメッセージ（オプション）
        """
        self.conversation_id = conversation_id
        super().__init__(message or f"Conversation {conversation_id} is not accessible")
