"""
Splits the byte stream read from the device into newline terminated text lines.
"""
import codecs
import logging

logger = logging.getLogger(__name__)


class LineFramer:
    """
    Accumulates chunks of bytes and emits each complete line.

    Lines are stripped of surrounding whitespace (so both \\n and \\r\\n endings are
    handled) and blank lines are not emitted. Text after the last delimiter stays
    buffered until a later chunk completes it. There is no bound on the length of a
    partial line.

    Chunks are validated as UTF-8 incrementally, so a character split between two
    chunks is accepted. A chunk containing invalid UTF-8 is dropped as a whole and
    logged; it does not affect the chunks that follow.
    """

    def __init__(self, delimiter='\n', encoding='utf-8'):
        self.delimiter = delimiter
        self.encoding = encoding
        self._decoder = codecs.getincrementaldecoder(encoding)(errors='strict')
        self._buffer = ''

    @property
    def pending(self) -> str:
        """ the buffered text not yet terminated by a delimiter """
        return self._buffer

    def reset(self):
        self._decoder.reset()
        self._buffer = ''

    def feed(self, chunk: bytes) -> list:
        """
        Appends the chunk to the buffer and extracts the completed lines.
        :param chunk: bytes read from the device
        :return: the list of completed lines, possibly empty.
        """
        if not chunk:
            return []
        try:
            text = self._decoder.decode(bytes(chunk))
        except UnicodeDecodeError as e:
            self._decoder.reset()
            logger.warning("discarding %d bytes that are not valid %s: %s" % (len(chunk), self.encoding, e))
            return []
        self._buffer += text
        return self._extract()

    def _extract(self):
        *complete, self._buffer = self._buffer.split(self.delimiter)
        lines = []
        for line in complete:
            line = line.strip()
            if line:
                lines.append(line)
        return lines
