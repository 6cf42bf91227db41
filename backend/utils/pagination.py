# utils/pagination.py


def paginate(query, page: int, page_size: int) -> dict:
    # Same envelope every list endpoint returns
    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}
