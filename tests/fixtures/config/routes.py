"""Route functions referenced by the site.yaml fixture."""


def page_route(collection_name, options, slugify):
    return f"/{slugify(collection_name)}/:path"


not_callable = "/static"
