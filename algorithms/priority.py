# algorithms/priority.py
from datetime import date, datetime

PRIORITY_LEVELS = ('routine', 'urgent', 'emergency', 'critical')

PRIORITY_CHOICES = [
    ('routine', 'Routine'),
    ('urgent', 'Urgent'),
    ('emergency', 'Emergency'),
    ('critical', 'Critical'),
]


def rank_blood_requests(blood_requests, today=None):
    """
    Priority Algorithm: Ranks blood requests by clinical priority, how soon
    the blood is required and how long the request has been waiting.
    Returns a list of dicts with request data and priority info
    """
    # Accept either a queryset or a plain list; normalize to list
    requests_list = list(blood_requests) if blood_requests is not None else []
    if len(requests_list) == 0:
        return []

    today = today or date.today()
    ranked_list = []

    for request in requests_list:
        priority_score = calculate_priority_score(request.priority)
        due_score = calculate_due_score(request.required_date, today)

        # Weighted score (0-100)
        score = priority_score * 0.70 + due_score * 0.30

        ranked_list.append({
            'request': request,
            'score': round(score, 1),
            'priority_score': priority_score,
            'due_score': due_score,
        })

    # Highest score first, oldest request first on ties
    ranked_list.sort(key=lambda x: (-x['score'], _created_key(x['request'])))

    return ranked_list


def calculate_priority_score(priority):
    """
    Convert priority level to a score (0-100)
    """
    priority_mapping = {
        'critical': 100,
        'emergency': 80,
        'urgent': 50,
        'routine': 20,
    }
    return priority_mapping.get(priority, 20)


def calculate_due_score(required_date, today):
    """
    Score how soon the blood is required (0-100).
    Overdue or due today = 100, a week or more away = 0
    """
    if required_date is None:
        return 0
    if isinstance(required_date, datetime):
        required_date = required_date.date()

    days_left = (required_date - today).days
    if days_left <= 0:
        return 100
    elif days_left == 1:
        return 80
    elif days_left <= 3:
        return 50
    elif days_left < 7:
        return 20
    else:
        return 0


def _created_key(request):
    created_at = getattr(request, 'created_at', None)
    return created_at.timestamp() if created_at else 0
