from dataclasses import dataclass

from PIL import Image as pilimage

MAX_DIMENSION = 16384


@dataclass(frozen=True)
class PixelBuffer:
    """Packed RGBA8888 pixels, row-major, no padding."""
    width: int
    height: int
    data: bytes

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f'invalid pixel buffer size {self.width}x{self.height}')
        if len(self.data) != self.width * self.height * 4:
            raise ValueError('pixel buffer data does not match its dimensions')

    @classmethod
    def from_pil(cls, image: pilimage.Image) -> 'PixelBuffer':
        if image.mode != 'RGBA':
            image = image.convert('RGBA')
        return cls(image.width, image.height, image.tobytes('raw', 'RGBA'))

    def to_pil(self) -> pilimage.Image:
        return pilimage.frombytes('RGBA', (self.width, self.height), self.data)
