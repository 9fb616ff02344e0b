"""
package: kvcodec.text
"""

# <AUTOGEN_INIT>
from kvcodec.text import (
    formatter,
    lexer,
    parser,
    serializer,
)


__all__ = [
    "formatter",
    "lexer",
    "parser",
    "serializer",
]
# </AUTOGEN_INIT>
