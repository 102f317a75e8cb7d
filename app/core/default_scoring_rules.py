from typing import Any, Dict, List


def _rule(
    name: str,
    field: str,
    condition_type: str,
    condition_value: str,
    score: int,
    lead_type: str,
    trigger: str,
    notes: str,
) -> Dict[str, Any]:
    return {
        "scoring_criteria_name": name,
        "field_checked": field,
        "condition_type": condition_type,
        "condition_value": condition_value,
        "score_value": score,
        "lead_type": lead_type,
        "automation_trigger": trigger,
        "status": "Active",
        "notes": notes,
        "created_by": "System",
    }


DEFAULT_SCORING_RULES: List[Dict[str, Any]] = [
    # Group leads
    _rule(
        "Group - Travel Within 30 Days",
        "travel_date", "within_days", "30", 20,
        "Group", "On Lead Create", "Travel Date within 30 days",
    ),
    _rule(
        "Group - Group Size 4-8 Travelers",
        "number_of_travelers", "between", "4,8", 10,
        "Group", "On Lead Create", "Medium group size",
    ),
    _rule(
        "Group - Group Size More Than 8 Travelers",
        "number_of_travelers", "greater_than", "8", 15,
        "Group", "On Lead Create", "Large group size",
    ),
    _rule(
        "Group - Budget Above ₹10,000 Per Person",
        "budget_per_person", "greater_than_or_equal", "10000", 10,
        "Group", "On Lead Create", "High budget per person",
    ),
    _rule(
        "Group - Destination Matches Active Campaign",
        "destination", "matches_campaign", "", 5,
        "Group", "On Lead Create", "Matches active group campaign",
    ),
    _rule(
        "Group - Response Time Within 12 Hours",
        "response_time_hours", "less_than_or_equal", "12", 10,
        "Group", "On Lead Update", "Quick response from lead",
    ),
    # FIT leads
    _rule(
        "FIT - Travel Month Within 45 Days",
        "travel_date", "within_days", "45", 20,
        "FIT", "On Lead Create", "Travel within 45 days",
    ),
    _rule(
        "FIT - Budget Above ₹40,000 Total",
        "budget", "greater_than_or_equal", "40000", 10,
        "FIT", "On Lead Create", "Budget above ₹40,000",
    ),
    _rule(
        "FIT - Pax 2-4 Travelers",
        "number_of_travelers", "between", "2,4", 5,
        "FIT", "On Lead Create", "2-4 travelers",
    ),
    _rule(
        "FIT - Destination Part of High-Inquiry List",
        "destination", "high_inquiry_fit", "", 5,
        "FIT", "On Lead Create", "Part of high-inquiry FIT list",
    ),
    _rule(
        "FIT - Response Time Within 6 Hours",
        "response_time_hours", "less_than_or_equal", "6", 10,
        "FIT", "On Lead Update", "Replied within 6 hours",
    ),
    _rule(
        "FIT - Itinerary Created Within 24 Hours",
        "itinerary_created_hours", "less_than_or_equal", "24", 10,
        "FIT", "On Lead Update", "Itinerary requested within 24 hours of enquiry",
    ),
    # Corporate leads
    _rule(
        "Corporate - Budget Over 10 Lakhs",
        "budget", "greater_than_or_equal", "1000000", 20,
        "Corporate", "On Lead Create", "Large corporate booking",
    ),
    _rule(
        "Corporate - 15+ Travelers",
        "number_of_travelers", "greater_than_or_equal", "15", 15,
        "Corporate", "On Lead Create", "Big corporate group",
    ),
    _rule(
        "Corporate - Company Email Domain",
        "email", "regex_match", r"^(?!.*@(gmail|yahoo|hotmail|outlook)\.).*@", 10,
        "Corporate", "On Lead Create", "Business email verification",
    ),
    _rule(
        "Corporate - Travel Within 45 Days",
        "travel_date", "within_days", "45", 10,
        "Corporate", "On Lead Create", "Corporate planning timeline",
    ),
]
