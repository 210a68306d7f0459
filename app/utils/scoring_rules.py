"""
Point weight tables for the scoring engine.

Two revisions of the house rules exist and disagree on first_dead and
first_exploded. Neither is treated as canonical: the deployment picks one
through the SCORING_RULES setting, and may override single weights through
SCORING_WEIGHTS (e.g. "win=12,first_dead=-4").
"""

from app.utils.scoring import ActionKind

SCORING_RULES = {
    "A": {
        ActionKind.FIRST_DEAD: -1,
        ActionKind.FIRST_EXPLODED: -3,
        ActionKind.BARKING_DIFFUSE: -1,
        ActionKind.BARKING_DEAD: -3,
        ActionKind.SECOND_PLACE: 5,
        ActionKind.WIN: 10,
    },
    "B": {
        ActionKind.FIRST_DEAD: -5,
        ActionKind.FIRST_EXPLODED: -1,
        ActionKind.BARKING_DIFFUSE: -1,
        ActionKind.BARKING_DEAD: -3,
        ActionKind.SECOND_PLACE: 5,
        ActionKind.WIN: 10,
    },
}

DEFAULT_SCORING_RULES = "A"


class ScoringRulesError(ValueError):
    """Raised for an unknown rule version or a malformed weight override"""


def parse_weight_overrides(text):
    """
    Parse "kind=points" pairs separated by commas.

    Returns:
        dict mapping ActionKind to int (empty for blank input)
    """
    overrides = {}
    if not text or not text.strip():
        return overrides

    for item in text.split(","):
        item = item.strip()
        if not item:
            continue
        if "=" not in item:
            raise ScoringRulesError(f"Expected kind=points, got '{item}'")

        name, _, value = item.partition("=")
        kind = ActionKind.parse(name.strip())
        if kind is None:
            raise ScoringRulesError(f"Unknown action kind '{name.strip()}'")
        try:
            overrides[kind] = int(value.strip())
        except ValueError:
            raise ScoringRulesError(
                f"Points for '{kind.value}' must be an integer, got '{value.strip()}'"
            ) from None

    return overrides


def get_weights(version=DEFAULT_SCORING_RULES, overrides=None):
    """Return a fresh weight table for a rule version, with overrides applied"""
    key = (version or DEFAULT_SCORING_RULES).strip().upper()
    if key not in SCORING_RULES:
        available = ", ".join(sorted(SCORING_RULES))
        raise ScoringRulesError(
            f"Unknown scoring rules '{version}' (available: {available})"
        )

    weights = dict(SCORING_RULES[key])
    if overrides:
        weights.update(overrides)
    return weights


def weights_from_config(config):
    """Build the active weight table from a Flask config mapping"""
    overrides = parse_weight_overrides(config.get("SCORING_WEIGHTS"))
    return get_weights(config.get("SCORING_RULES", DEFAULT_SCORING_RULES), overrides)


def describe_weights(weights):
    """Weights as a plain {kind value: points} dict, in ActionKind order"""
    return {kind.value: weights.get(kind, 0) for kind in ActionKind}
