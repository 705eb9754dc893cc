"""Data models for image edit history and galleries."""

from pydantic import BaseModel, ConfigDict, Field

# Inclusive (min, max) range of each adjustment parameter
ADJUSTMENT_RANGES: dict[str, tuple[int, int]] = {
    "intensity": (0, 100),
    "brightness": (0, 200),
    "contrast": (0, 200),
    "saturation": (0, 200),
    "sepia": (0, 100),
}


class Adjustments(BaseModel):
    """Numeric adjustment parameters applied on top of an edit result."""

    model_config = ConfigDict(frozen=True)

    intensity: int = Field(default=100, ge=0, le=100, description="Opacity of the AI edit overlay (%)")
    brightness: int = Field(default=100, ge=0, le=200)
    contrast: int = Field(default=100, ge=0, le=200)
    saturation: int = Field(default=100, ge=0, le=200)
    sepia: int = Field(default=0, ge=0, le=100)

    def css_filter(self) -> str:
        """Filter string equivalent to the adjustments (brightness/contrast/saturate/sepia)."""
        return (
            f"brightness({self.brightness}%) contrast({self.contrast}%) "
            f"saturate({self.saturation}%) sepia({self.sepia}%)"
        )


class EditState(BaseModel):
    """One value snapshot of the image editor."""

    model_config = ConfigDict(frozen=True)

    result: str | None = Field(default=None, description="Edited image reference (data URL)")
    prompt: str = ""
    intensity: int = Field(default=100, ge=0, le=100)
    brightness: int = Field(default=100, ge=0, le=200)
    contrast: int = Field(default=100, ge=0, le=200)
    saturation: int = Field(default=100, ge=0, le=200)
    sepia: int = Field(default=0, ge=0, le=100)

    @property
    def adjustments(self) -> Adjustments:
        return Adjustments(
            intensity=self.intensity,
            brightness=self.brightness,
            contrast=self.contrast,
            saturation=self.saturation,
            sepia=self.sepia,
        )

    def with_adjustments(self, adjustments: Adjustments) -> "EditState":
        return self.model_copy(update=adjustments.model_dump())


class ImageGalleryItem(BaseModel):
    """A completed AI image edit kept in the gallery."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(description="Creation time in milliseconds")
    prompt: str
    original_url: str
    edited_url: str


class VideoGalleryItem(BaseModel):
    """A generated video kept in the gallery."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(description="Creation time in milliseconds")
    prompt: str
    url: str
    aspect_ratio: str
    style: str = ""
