"""Adaptive Card 附件封装。"""

from typing import Any, Dict

from notify_core.domain.activity import ActivityTypes

ADAPTIVE_CARD_CONTENT_TYPE = "application/vnd.microsoft.card.adaptive"


def adaptive_card_attachment(card: Any) -> Dict[str, Any]:
    return {"contentType": ADAPTIVE_CARD_CONTENT_TYPE, "content": card}


def adaptive_card_activity(card: Any) -> Dict[str, Any]:
    """把卡片原始 JSON 包装成一条 message 活动。"""
    return {
        "type": ActivityTypes.MESSAGE,
        "attachments": [adaptive_card_attachment(card)],
    }
