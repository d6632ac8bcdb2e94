"""Static copy shown next to an analysis result.

Nothing here is computed by the engine; the text is picked by status
and explanation mode only.
"""
from enum import Enum
from typing import Dict, List

from .models import AnalysisResult, Status


class ExplainMode(str, Enum):
    NORMAL = "normal"
    ELI12 = "eli12"


EMPTY_INDICATORS_MESSAGE = "No common patterns found"

EXAMPLES: List[Dict[str, str]] = [
    {
        "title": "Suspicious Email",
        "text": "Urgent: Your account has been suspended. Click here to verify "
                "your identity immediately or your funds will be lost.",
    },
    {
        "title": "Safe Message",
        "text": "Hi Mom, just checking in to see if you're coming over for dinner "
                "on Sunday. Let me know!",
    },
]

# css class, icon
STATUS_STYLES: Dict[Status, Dict[str, str]] = {
    Status.SAFE: {"css": "safe", "icon": "✔"},
    Status.SUSPICIOUS: {"css": "suspicious", "icon": "!"},
    Status.DANGEROUS: {"css": "dangerous", "icon": "✖"},
}

_SAFE = {
    ExplainMode.NORMAL: [
        "This message appears to be legitimate based on standard communication "
        "patterns. No known phishing signatures or suspicious links were "
        "identified in the content provided.",
    ],
    ExplainMode.ELI12: [
        "\"This looks like a normal message from a friend or a real company. It "
        "doesn't have any of the 'sneaky tricks' that bad people use to steal "
        "things.\"",
    ],
}

_RISKY = {
    ExplainMode.NORMAL: [
        "Our analysis has identified several high-risk elements in this "
        "communication. The message uses manipulative language designed to "
        "trigger an emotional response.",
        "The primary concern is the {indicators}. This is a classic tactic used "
        "by attackers to bypass logical thinking and force a quick mistake.",
    ],
    ExplainMode.ELI12: [
        "\"Imagine someone wearing a mask pretending to be your principal. They "
        "are shouting 'Hurry up!' so you don't look closely at their mask.\"",
        "\"They want you to click a button or give them a secret password. But "
        "remember: real companies will never yell at you to do something right "
        "this second.\"",
    ],
}

_NEXT_STEPS_SAFE = [
    {
        "title": "You can proceed",
        "detail": "Always be cautious if they ask for payment or passwords.",
    },
]

_NEXT_STEPS_RISKY = [
    {
        "title": "Do NOT click any links",
        "detail": "Hover your mouse over links to see where they really go without clicking.",
    },
    {
        "title": "Visit the official website directly",
        "detail": "Open a new tab and type the website address yourself instead of clicking the link.",
    },
    {
        "title": "Report this message",
        "detail": "Mark it as 'Spam' or 'Phishing' in your email app to help others.",
    },
]


def explain(result: AnalysisResult, mode: ExplainMode = ExplainMode.NORMAL) -> List[str]:
    mode = ExplainMode(mode)
    if result.status == Status.SAFE:
        return list(_SAFE[mode])
    joined = " and ".join(result.indicators) or "overall wording of the message"
    return [p.format(indicators=joined) for p in _RISKY[mode]]


def next_steps(status: Status) -> List[Dict[str, str]]:
    steps = _NEXT_STEPS_SAFE if status == Status.SAFE else _NEXT_STEPS_RISKY
    return [dict(s) for s in steps]
