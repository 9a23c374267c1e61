import unittest

from hamcrest import assert_that, calling, is_, raises

from serialrelay.conduit.base import Conduit


class LoopbackConduit(Conduit):
    def __init__(self):
        self.closed = False

    @property
    def input(self):
        return "in"

    @property
    def output(self):
        return "out"

    @property
    def open(self):
        return not self.closed

    def close(self):
        self.closed = True


class ConduitTest(unittest.TestCase):

    def test_cannot_instantiate_without_streams(self):
        assert_that(calling(Conduit), raises(TypeError))

    def test_subclass_provides_streams(self):
        sut = LoopbackConduit()
        assert_that(sut.input, is_("in"))
        assert_that(sut.output, is_("out"))
        assert_that(sut.open, is_(True))
        sut.close()
        assert_that(sut.open, is_(False))
