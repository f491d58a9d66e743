import os
import random

import pytest
from PIL import Image


def make_source(path, size=(600, 400), mode="RGBA"):
    rng = random.Random(1234)
    img = Image.new(mode, size)
    pixels = [tuple(rng.randrange(256) for _ in mode) for _ in range(size[0] * size[1])]
    img.putdata(pixels)
    img.save(path, "PNG")
    return path


@pytest.fixture
def source_image(tmp_path):
    return make_source(os.fspath(tmp_path / "original-icon.png"))


@pytest.fixture
def output_dir(tmp_path):
    return os.fspath(tmp_path / "out" / "icons")
