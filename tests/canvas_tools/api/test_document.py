import logging

import pytest

from canvas_tools.api.document import Document
from canvas_tools.api.layers import BitmapLayer

logger = logging.getLogger(__name__)


def test_document():
    bottom, top = BitmapLayer(name="bottom"), BitmapLayer(name="top")
    document = Document(80, 60, name="poster", layers=[bottom])
    document.append(top)

    assert document.size == (80, 60)
    assert len(document) == 2
    assert list(document) == [bottom, top]
    assert document[0] is bottom
    assert document[-1] is top
    assert document.index(top) == 1
    assert top in document
    assert document.find(top.layer_id) is top
    assert document.find(-1) is None
    assert "poster" in repr(document)


def test_document_insert_remove():
    first, second = BitmapLayer(), BitmapLayer()
    document = Document(10, 10, layers=[first])
    document.insert(0, second)
    assert document.layers == [second, first]
    document.remove(second)
    assert document.layers == [first]
    with pytest.raises(ValueError):
        document.remove(second)


def test_document_layers_is_copy():
    document = Document(10, 10)
    document.layers.append(BitmapLayer())
    assert len(document) == 0


@pytest.mark.parametrize("width, height", [(0, 10), (10, -1)])
def test_document_invalid_size(width, height):
    with pytest.raises(ValueError):
        Document(width, height)


def test_document_invalid_layers():
    layer = BitmapLayer()
    document = Document(10, 10, layers=[layer])
    with pytest.raises(ValueError):
        document.append(layer)
    with pytest.raises(TypeError):
        document.append("layer")
