"""Farm records (``farms_c``). Farms are not farm-scoped, so no get_by_farm_id."""
from .mappers import Entity, Field, NUMBER
from .services import EntityService

FARM = Entity(
    collection="farms_c",
    label="name",
    singular="farm",
    plural="farms",
    fields=(
        Field("name", "name_c"),
        Field("location", "location_c"),
        Field("size", "size_c", kind=NUMBER),
        Field("sizeUnit", "sizeUnit_c", default="acres"),
    ),
)


class FarmService(EntityService):
    def __init__(self, **kwargs):
        super().__init__(FARM, **kwargs)


farm_service = FarmService()
