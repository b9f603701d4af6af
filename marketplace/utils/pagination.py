MAX_LIMIT = 100


def page_args(args, default_limit=10):
    """Read ``page``/``limit`` from query args; junk falls back to defaults."""
    try:
        page = max(int(args.get("page", 1)), 1)
        limit = max(int(args.get("limit", default_limit)), 1)
    except (TypeError, ValueError):
        page, limit = 1, default_limit
    return page, min(limit, MAX_LIMIT)


def paginate_query(query, page, limit):
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    meta = {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": -(-total // limit),
    }
    return items, meta
