# harvestchain/routes/pagination.py
from flask import request

from harvestchain.services.farmer.farmer_service import DEFAULT_PAGE_SIZE


def page_args():
    """`?limit=&skip=` with the same fallbacks as the dashboard expects (bad/zero limit -> 50)."""
    limit = request.args.get("limit", DEFAULT_PAGE_SIZE, type=int)
    skip = request.args.get("skip", 0, type=int)
    if limit <= 0:
        limit = DEFAULT_PAGE_SIZE
    return limit, max(skip, 0)
