"""Tests for deferred execution and the composition primitives."""
import numpy as np
import pytest

from rasterflow import Image, Median, Pipeline, Raster, Rgba
from rasterflow.rgba import BLACK, GRAYSCALE_FACTOR


def _constant(pixel: Rgba) -> Pipeline:
    return Pipeline().commit(lambda img: Image.from_pixel(img.width, img.height, pixel))


class TestDeferredExecution:
    def test_empty_pipeline_is_identity(self, random_image):
        out = Pipeline().apply(random_image)
        assert out == random_image
        assert out is not random_image

    def test_nothing_runs_until_apply(self, random_image):
        calls = []

        def step(img):
            calls.append(img.size)
            return img

        pipeline = Pipeline().commit(step).invert().commit(step)
        assert calls == []
        pipeline.apply(random_image)
        assert calls == [random_image.size, random_image.size]

    def test_builder_returns_new_values(self):
        base = Pipeline()
        extended = base.invert()
        assert len(base) == 0
        assert len(extended) == 1
        assert len(extended.dim(Rgba.gray(0.5))) == 2
        assert len(extended) == 1

    def test_input_is_not_mutated(self, random_image):
        before = random_image.copy()
        Pipeline().invert().dim(Rgba.gray(3.0)).offset(1, 1).apply(random_image)
        assert random_image == before

    def test_generate_starts_from_black(self):
        out = Pipeline().invert().generate(3, 2)
        assert out.size == (3, 2)
        assert np.allclose(out.pixels, [1.0, 1.0, 1.0, 0.0])

    def test_steps_run_in_order(self):
        out = Pipeline().dim(Rgba.gray(0.5)).invert().generate(1, 1)
        # black dimmed, then inverted
        assert out[0, 0] == Rgba(1.0, 1.0, 1.0, 0.5)
        other = Pipeline().invert().dim(Rgba.gray(0.5)).generate(1, 1)
        assert other[0, 0] == Rgba(0.5, 0.5, 0.5, 0.0)

    def test_image_type_supplies_the_canvas(self):
        class Tagged(Image):
            pass

        out = Pipeline(image_type=Tagged).generate(2, 2)
        assert isinstance(out, Tagged)


class TestOffset:
    def test_reads_shifted_content(self, ramp_image):
        out = Pipeline().offset(1, 0).apply(ramp_image)
        assert out[0, 0] == ramp_image[1, 0]
        assert out[3, 2] == ramp_image[4, 2]

    def test_edges_are_replicated(self, random_image):
        out = Pipeline().offset(3, -2).apply(random_image)
        w, h = random_image.size
        assert out[w - 1, 0] == random_image[w - 1, 0]
        assert out[w - 2, 1] == random_image[w - 1, 0]
        assert out[0, h - 1] == random_image[3, h - 3]

    def test_round_trip_except_borders(self, random_image):
        dx, dy = 2, 1
        out = Pipeline().offset(dx, dy).offset(-dx, -dy).apply(random_image)
        assert np.array_equal(out.pixels[dy:, dx:], random_image.pixels[dy:, dx:])
        assert not np.array_equal(out.pixels, random_image.pixels)


class TestAlgebra:
    def test_dim_composes(self, random_image):
        f1 = Rgba(0.5, 2.0, 0.25, 0.9)
        f2 = Rgba(1.5, 0.3, 4.0, 0.7)
        twice = Pipeline().dim(f1).dim(f2).apply(random_image)
        once = Pipeline().dim(f1 * f2).apply(random_image)
        assert np.allclose(twice.pixels, once.pixels)

    def test_add_applies_other_to_same_input(self, random_image):
        out = Pipeline().add(Pipeline()).apply(random_image)
        assert np.allclose(out.pixels, random_image.pixels * 2)

    def test_add_sums_alpha(self, uniform_image):
        out = Pipeline().add(_constant(Rgba(0.1, 0.1, 0.1, 1.0))).apply(uniform_image)
        assert out[0, 0].as_tuple() == pytest.approx((0.3, 0.5, 0.7, 1.8))

    def test_sub_keeps_left_alpha(self, uniform_image):
        out = Pipeline().sub(Pipeline()).apply(uniform_image)
        assert out[1, 1] == Rgba(0.0, 0.0, 0.0, 0.8)

    def test_minimum_and_maximum(self, uniform_image):
        gray = _constant(Rgba.gray(0.5))
        lo = Pipeline().minimum(gray).apply(uniform_image)
        hi = Pipeline().maximum(gray).apply(uniform_image)
        assert lo[0, 0] == Rgba(0.2, 0.4, 0.5, 0.8)
        assert hi[0, 0] == Rgba(0.5, 0.5, 0.6, 1.0)

    def test_invert_includes_alpha(self):
        img = Image.from_pixel(2, 2, Rgba(0.25, 0.5, 1.0, 1.0))
        assert Pipeline().invert().apply(img)[0, 0] == Rgba(0.75, 0.5, 0.0, 0.0)


class TestEnnoise:
    def test_neutral_gray_noise_changes_nothing(self, random_image):
        out = Pipeline().ennoise(_constant(Rgba.gray(0.5))).apply(random_image)
        assert np.allclose(out.pixels, random_image.pixels)

    def test_noise_is_recentred_and_doubled(self, uniform_image):
        out = Pipeline().ennoise(_constant(Rgba.gray(0.75))).apply(uniform_image)
        assert out[0, 0].as_tuple() == pytest.approx((0.7, 0.9, 1.1, 0.8))


class TestGrayscale:
    def test_weights_are_applied_twice(self):
        img = Image.from_pixel(2, 2, Rgba(1.0, 1.0, 1.0, 0.5))
        out = Pipeline().grayscale().apply(img)[0, 0]
        w = GRAYSCALE_FACTOR
        expected = (w.r ** 2 + w.g ** 2 + w.b ** 2) / 3.0
        assert out.r == out.g == out.b == pytest.approx(expected)
        assert out.a == 0.5

    def test_matches_pixel_grayscale_after_dim(self, random_image):
        out = Pipeline().grayscale().apply(random_image)
        for x, y, px in random_image:
            expected = (px * GRAYSCALE_FACTOR).grayscale()
            assert out[x, y].as_tuple() == pytest.approx(expected.as_tuple())


class ArrayRaster:
    """Minimal raster over a bare float array, unrelated to Image."""

    def __init__(self, pixels):
        self._pixels = np.array(pixels, dtype=np.float64)

    @classmethod
    def black(cls, width, height):
        return cls.from_pixel(width, height, BLACK)

    @classmethod
    def from_pixel(cls, width, height, pixel):
        return cls(np.broadcast_to(pixel.as_array(), (height, width, 4)))

    @property
    def width(self):
        return self._pixels.shape[1]

    @property
    def height(self):
        return self._pixels.shape[0]

    @property
    def pixels(self):
        return self._pixels

    def with_pixels(self, pixels):
        return type(self)(pixels)

    def copy(self):
        return type(self)(self._pixels)

    def __getitem__(self, xy):
        x, y = xy
        return Rgba.from_array(self._pixels[y, x])


class TestRasterCapability:
    def test_array_raster_satisfies_the_protocol(self):
        assert isinstance(ArrayRaster.black(2, 2), Raster)

    def test_generate_uses_the_image_type(self):
        out = Pipeline(image_type=ArrayRaster).invert().generate(3, 2)
        assert isinstance(out, ArrayRaster)
        assert np.allclose(out.pixels, [1.0, 1.0, 1.0, 0.0])

    def test_median_kernel_comes_from_the_image_type(self, uniform_image):
        raster = ArrayRaster(uniform_image.pixels)
        out = Pipeline(image_type=ArrayRaster).filter(Median(3)).apply(raster)
        assert isinstance(out, ArrayRaster)
        assert np.allclose(out.pixels, uniform_image.pixels)

    @pytest.mark.parametrize("build", [
        lambda p: p.gaussian_blur(),
        lambda p: p.grayscale().gradient().non_max_suppress(),
        lambda p: p.canny([0.1, 0.3]),
    ])
    def test_steps_match_image_results(self, random_image, build):
        expected = build(Pipeline()).apply(random_image)
        out = build(Pipeline(image_type=ArrayRaster)).apply(ArrayRaster(random_image.pixels))
        assert isinstance(out, ArrayRaster)
        assert np.allclose(out.pixels, expected.pixels)
