import unittest

from hamcrest import assert_that, calling, equal_to, is_, is_not, raises

from serialrelay.support.mixins import CommonEqualityMixin


class Port(CommonEqualityMixin):
    def __init__(self, device=None, description=None):
        self.device = device
        self.description = description


class Device(CommonEqualityMixin):
    def __init__(self, device=None, description=None):
        self.device = device
        self.description = description


class CommonEqualityMixinTest(unittest.TestCase):

    def test_equal_attributes(self):
        p1 = Port("COM" + "3", "USB serial")
        p2 = Port("COM3", "USB serial")
        assert_that(p1, is_(equal_to(p2)))
        assert_that(p1 != p2, is_(False))

    def test_different_attributes(self):
        p1 = Port("COM3", "USB serial")
        p2 = Port("COM3", "Bluetooth")
        assert_that(p1, is_not(equal_to(p2)))
        assert_that(p1 != p2, is_(True))

    def test_different_classes_not_equal(self):
        assert_that(Port("COM3"), is_not(equal_to(Device("COM3"))))
        assert_that(Port("COM3"), is_not(equal_to(object())))

    def test_cycle_raises(self):
        p1 = Port()
        p2 = Port()
        p1.device = p2
        p2.device = p1
        assert_that(calling(p1.__eq__).with_args(p2), raises(ValueError))

    def test_comparison_after_a_cycle(self):
        p1 = Port()
        p1.device = Port()
        p1.device.device = p1
        assert_that(calling(p1.__eq__).with_args(p1.device), raises(ValueError))
        assert_that(Port("COM3"), is_(equal_to(Port("COM3"))))

    def test_unhashable(self):
        assert_that(calling(hash).with_args(Port()), raises(TypeError))
