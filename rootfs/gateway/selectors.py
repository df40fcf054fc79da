from gateway.exceptions import ValidationError

OPERATORS = ("In", "NotIn", "Exists", "DoesNotExist")


def parse_selector(selector):
    """
    Turn a metav1.LabelSelector into a list of (key, operator, values) requirements.
    """
    requirements = []
    for key, value in sorted((selector.get("matchLabels") or {}).items()):
        requirements.append((key, "In", [value]))
    for expression in selector.get("matchExpressions") or []:
        key = expression.get("key")
        operator = expression.get("operator")
        values = expression.get("values") or []
        if not key or operator not in OPERATORS:
            raise ValidationError("invalid label selector expression {}".format(expression))
        if operator in ("In", "NotIn") and not values:
            raise ValidationError(
                "values must be set for the {} operator of key {}".format(operator, key))
        if operator in ("Exists", "DoesNotExist") and values:
            raise ValidationError(
                "values must be empty for the {} operator of key {}".format(operator, key))
        requirements.append((key, operator, values))
    return requirements


def match_labels(requirements, labels):
    """An empty requirement list matches every label set."""
    labels = labels or {}
    for key, operator, values in requirements:
        if operator == "In" and labels.get(key) not in values:
            return False
        if operator == "NotIn" and key in labels and labels[key] in values:
            return False
        if operator == "Exists" and key not in labels:
            return False
        if operator == "DoesNotExist" and key in labels:
            return False
    return True
