"""Crop records (``crops_c``)."""
from .mappers import Entity, Field, REFERENCE
from .services import FarmScopedService

CROP = Entity(
    collection="crops_c",
    label="cropType",
    singular="crop",
    plural="crops",
    fields=(
        Field("cropType", "cropType_c"),
        Field("fieldLocation", "fieldLocation_c"),
        Field("plantingDate", "plantingDate_c"),
        Field("expectedHarvestDate", "expectedHarvestDate_c"),
        Field("status", "status_c", default="Planted"),
        Field("notes", "notes_c"),
        Field("farmId", "farmId_c", kind=REFERENCE),
    ),
)


class CropService(FarmScopedService):
    def __init__(self, **kwargs):
        super().__init__(CROP, **kwargs)


crop_service = CropService()
