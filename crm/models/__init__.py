"""Import every model so Base.metadata knows all tables."""
from crm.models.lead import Lead, LeadStage  # noqa: F401
from crm.models.activity import Activity, ActivityType  # noqa: F401
from crm.models.follow_up import FollowUp  # noqa: F401
from crm.models.campaign import Campaign  # noqa: F401
