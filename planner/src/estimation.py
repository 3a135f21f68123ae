import re

MIN_DURATION = 15
MAX_DURATION = 480
BASE_DURATION = 30

COMPLEXITY_INDICATORS = [
    "analyze",
    "create",
    "design",
    "develop",
    "implement",
    "integrate",
    "research",
    "review",
    "test",
    "debug",
    "optimize",
    "refactor",
    "complex",
    "difficult",
    "challenging",
    "comprehensive",
]

PRIORITY_MULTIPLIERS = {"high": 1.5, "medium": 1.0, "low": 0.7}

COMPLEXITY_KEYWORDS = {
    "high": [
        "complex",
        "difficult",
        "challenging",
        "analyze",
        "research",
        "develop",
        "design",
        "implement",
        "integrate",
        "optimize",
        "architecture",
        "framework",
        "system",
        "algorithm",
    ],
    "medium": [
        "create",
        "build",
        "modify",
        "update",
        "enhance",
        "improve",
        "feature",
        "function",
        "component",
        "module",
        "test",
    ],
    "low": [
        "simple",
        "easy",
        "quick",
        "small",
        "minor",
        "fix",
        "update",
        "change",
        "add",
        "remove",
        "edit",
        "check",
    ],
}
COMPLEXITY_WEIGHTS = {"high": 3, "medium": 2, "low": 1}

STOP_WORDS = {"and", "the", "this", "that", "with", "from"}


def _clamp(minutes):
    return min(max(minutes, MIN_DURATION), MAX_DURATION)


def _round(value):
    # half up, the way the estimates have always been rounded
    return int(value + 0.5)


def base_duration(description, priority):
    words = description.split()
    lowered = description.lower()
    complexity_score = sum(1 for word in COMPLEXITY_INDICATORS if word in lowered)

    length_factor = min(len(words) / 10, 5)
    complexity_factor = min(complexity_score * 0.5, 3)
    multiplier = PRIORITY_MULTIPLIERS.get(priority, 1.0)

    return _clamp(
        _round(BASE_DURATION * (1 + length_factor + complexity_factor) * multiplier)
    )


def find_similar_tasks(description, priority, history, limit=5):
    """
    Score past tasks by shared keywords (+1 each) and same priority (+2).

    Only tasks scoring above 1 count as similar.
    """
    keywords = [
        word
        for word in re.split(r"\s+", description.lower())
        if len(word) > 3 and word not in STOP_WORDS
    ]

    scored = []
    for past in history:
        past_description = (past.get("description") or "").lower()
        score = sum(1 for keyword in keywords if keyword in past_description)
        if past.get("priority") == priority:
            score += 2
        scored.append((score, past))

    scored.sort(key=lambda item: item[0], reverse=True)
    return [past for score, past in scored if score > 1][:limit]


def predict_task_duration(description, priority="medium", history=None):
    """
    Estimate how many minutes a task will take.

    `history` is a list of completed tasks as dicts with `description`,
    `priority` and `duration`. When some of them look similar, their average
    duration dominates the estimate.
    """
    estimate = base_duration(description or "", priority)
    if not history:
        return estimate

    similar = find_similar_tasks(description or "", priority, history)
    if not similar:
        return estimate

    average = sum(past["duration"] for past in similar) / len(similar)
    return _clamp(_round(estimate * 0.3 + average * 0.7))


def predict_task_complexity(description):
    lowered = (description or "").lower()
    weighted = {
        level: COMPLEXITY_WEIGHTS[level]
        * sum(1 for keyword in keywords if keyword in lowered)
        for level, keywords in COMPLEXITY_KEYWORDS.items()
    }

    if weighted["high"] > weighted["medium"] and weighted["high"] > weighted["low"]:
        return "high"
    if weighted["medium"] > weighted["low"]:
        return "medium"
    return "low"
