from netsink.io.output.base import OutputSink
from netsink.io.output.descriptor import Descriptor, parse_descriptor
from netsink.io.output.dialer import dial
from netsink.io.output.net import NetOutputSink

__all__ = ["OutputSink", "Descriptor", "parse_descriptor", "dial", "NetOutputSink"]
