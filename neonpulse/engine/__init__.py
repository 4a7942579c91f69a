from .access_control import AccessGate, CidrBlock, ExactAddress, WildcardPattern, normalize_address
from .analyst import generate_report
from .log_parser import detect_log_level, priority_to_level

__all__ = [
    "AccessGate",
    "CidrBlock",
    "ExactAddress",
    "WildcardPattern",
    "normalize_address",
    "generate_report",
    "detect_log_level",
    "priority_to_level",
]
