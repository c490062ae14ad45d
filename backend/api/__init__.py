"""HTTP layer for Page Digest.

The application object is re-exported so uvicorn can be pointed at the
package directly::

    uvicorn backend.api:app --reload
"""

from backend.api.app import app

__all__ = ["app"]
