from enum import Enum


class UserRole(str, Enum):
    MANAGER = "manager"
    FIELD_STAFF = "field_staff"
    ANALYTICS = "analytics"


class PlantStatus(str, Enum):
    SEEDLING = "seedling"
    GROWING = "growing"
    MATURE = "mature"
    HARVESTING = "harvesting"
    HARVESTED = "harvested"
    DISEASED = "diseased"
    DEAD = "dead"


# Lots in these states no longer count as active in zone analytics
INACTIVE_PLANT_STATUSES = (PlantStatus.HARVESTED, PlantStatus.DEAD)


class HealthStatus(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    DISEASED = "diseased"
    CRITICAL = "critical"


class AnalysisStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
