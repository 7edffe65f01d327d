from plantpro.api.models.enums import AnalysisStatus, HealthStatus, PlantStatus, UserRole
from plantpro.api.models.user import User
from plantpro.api.models.zone import Zone
from plantpro.api.models.species import PlantSpecies
from plantpro.api.models.plant_lot import PlantLot
from plantpro.api.models.health_log import HealthLog

__all__ = [
    'AnalysisStatus',
    'HealthStatus',
    'PlantStatus',
    'UserRole',
    'User',
    'Zone',
    'PlantSpecies',
    'PlantLot',
    'HealthLog'
]
