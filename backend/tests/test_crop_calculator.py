"""
Unit tests for crop geometry: attention cover crops and contain sizing.
"""

import unittest
from PIL import Image, ImageDraw

from services.crop_calculator import CropBox, calculate_contain_size, calculate_cover_crop


def create_test_image(width: int, height: int, color=(128, 128, 128)) -> Image.Image:
    """Create a flat test image."""
    return Image.new('RGB', (width, height), color)


def add_block(image: Image.Image, box, color=(220, 20, 20)) -> Image.Image:
    """Paint a saturated rectangle (x0, y0, x1, y1) onto the image."""
    ImageDraw.Draw(image).rectangle(box, fill=color)
    return image


class TestCropBox(unittest.TestCase):
    """Test CropBox dataclass and methods."""

    def test_validate_bounds(self):
        crop = CropBox(x=10, y=10, width=100, height=100)

        self.assertTrue(crop.validate_bounds(200, 200))
        self.assertFalse(crop.validate_bounds(50, 200))
        self.assertFalse(crop.validate_bounds(200, 50))

    def test_adjust_to_bounds(self):
        crop = CropBox(x=150, y=150, width=100, height=100)

        adjusted = crop.adjust_to_bounds(200, 200)

        self.assertEqual(adjusted, CropBox(100, 100, 100, 100))
        self.assertTrue(adjusted.validate_bounds(200, 200))

    def test_as_box(self):
        self.assertEqual(CropBox(10, 20, 100, 50).as_box(), (10, 20, 110, 70))

    def test_to_dict(self):
        self.assertEqual(
            CropBox(10, 20, 100, 150).to_dict(),
            {'x': 10, 'y': 20, 'width': 100, 'height': 150}
        )


class TestContainSize(unittest.TestCase):
    """Contain: fit inside the box, never enlarge."""

    def test_landscape_is_scaled_to_width(self):
        self.assertEqual(calculate_contain_size(2000, 1000, 800, 800), (800, 400))

    def test_portrait_is_scaled_to_height(self):
        self.assertEqual(calculate_contain_size(1200, 1600, 800, 800), (600, 800))

    def test_large_square(self):
        self.assertEqual(calculate_contain_size(3000, 3000, 800, 800), (800, 800))

    def test_small_image_is_not_enlarged(self):
        self.assertEqual(calculate_contain_size(640, 480, 800, 800), (640, 480))
        self.assertEqual(calculate_contain_size(800, 800, 800, 800), (800, 800))

    def test_one_side_over_the_box(self):
        self.assertEqual(calculate_contain_size(1000, 500, 800, 800), (800, 400))

    def test_aspect_ratio_is_kept_within_rounding(self):
        for width, height in [(1920, 1080), (1234, 987), (3001, 2003), (801, 4000)]:
            new_width, new_height = calculate_contain_size(width, height, 800, 800)
            self.assertEqual(max(new_width, new_height), 800)
            self.assertAlmostEqual(
                new_width / new_height, width / height,
                delta=(width / height) / min(new_width, new_height)
            )

    def test_extreme_ratio_keeps_one_pixel(self):
        self.assertEqual(calculate_contain_size(10000, 2, 800, 800), (800, 1))


class TestCoverCrop(unittest.TestCase):
    """Cover: crop to the target ratio around the salient region."""

    def test_exact_ratio_keeps_whole_image(self):
        image = create_test_image(1000, 1000)
        self.assertEqual(calculate_cover_crop(image, 800, 800), CropBox(0, 0, 1000, 1000))

    def test_featureless_image_is_center_cropped(self):
        image = create_test_image(1600, 800)

        crop = calculate_cover_crop(image, 800, 800)

        self.assertEqual(crop, CropBox(400, 0, 800, 800))

    def test_featureless_portrait_is_center_cropped_vertically(self):
        image = create_test_image(600, 1200)

        crop = calculate_cover_crop(image, 800, 800)

        self.assertEqual(crop, CropBox(0, 300, 600, 600))

    def test_horizontal_crop_follows_salient_region(self):
        image = add_block(create_test_image(1600, 800), (1200, 250, 1500, 550))

        crop = calculate_cover_crop(image, 800, 800)

        self.assertEqual((crop.width, crop.height), (800, 800))
        self.assertTrue(crop.validate_bounds(1600, 800))
        # The block must be fully inside; a plain center crop (400-1200) misses it
        self.assertLessEqual(crop.x, 1200)
        self.assertGreaterEqual(crop.x + crop.width, 1500)

    def test_vertical_crop_follows_salient_region(self):
        image = add_block(create_test_image(600, 1200), (200, 60, 400, 240), color=(20, 200, 40))

        crop = calculate_cover_crop(image, 600, 800)

        self.assertEqual((crop.width, crop.height), (600, 800))
        self.assertLessEqual(crop.y, 60)
        self.assertGreaterEqual(crop.y + crop.height, 240)

    def test_portrait_target_on_landscape_source(self):
        image = add_block(create_test_image(2000, 1000), (50, 300, 350, 700), color=(30, 30, 230))

        crop = calculate_cover_crop(image, 600, 800)

        self.assertEqual((crop.width, crop.height), (750, 1000))
        self.assertLessEqual(crop.x, 50)
        self.assertTrue(crop.validate_bounds(2000, 1000))

    def test_small_image_crop_is_within_bounds(self):
        image = add_block(create_test_image(120, 90), (90, 10, 110, 80))

        crop = calculate_cover_crop(image, 800, 800)

        self.assertEqual((crop.width, crop.height), (90, 90))
        self.assertTrue(crop.validate_bounds(120, 90))


if __name__ == '__main__':
    unittest.main()
