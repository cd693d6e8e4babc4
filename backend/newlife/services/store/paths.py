"""
Document paths, laid out as users/{uid}/pregnancies/{pid}/{collection}.
"""

PREGNANCIES = "pregnancies"
HOSPITAL_VISITS = "hospitalVisits"
SYMPTOMS = "symptoms"
MILESTONES = "milestones"
CHAT_MESSAGES = "chatMessages"


def pregnancies_path(user_id: str) -> str:
    return f"users/{user_id}/{PREGNANCIES}"


def pregnancy_path(user_id: str, pregnancy_id: str) -> str:
    return f"{pregnancies_path(user_id)}/{pregnancy_id}"


def records_path(user_id: str, pregnancy_id: str, collection: str) -> str:
    """Collection nested under one pregnancy (visits, symptoms, chat...)."""
    return f"{pregnancy_path(user_id, pregnancy_id)}/{collection}"
