from .membership_filter import MembershipFilter
from .membership_index import MembershipIndex

__all__ = ["MembershipFilter", "MembershipIndex"]
