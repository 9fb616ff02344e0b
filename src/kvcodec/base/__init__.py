"""
package: kvcodec.base
"""

# <AUTOGEN_INIT>
from kvcodec.base import config, types


__all__ = [
    "config",
    "types",
]
# </AUTOGEN_INIT>
