"""
GlobalSize Link Graph
=====================

Internal link generation and crawl-integrity audits for the GlobalSize
static shoe-size converter site.

    routes           route catalog expanded from the shoe table
    link_builders    the four link sections every programmatic page carries
    materializer     writes route pages, the programmatic index and hub stubs
    crawler          rebuilds the link graph from HTML on disk
    checks           broken links, orphans, depth, readiness, prebuild gate
    orphan_resolver  patches hub pages until every page has enough inbound links
"""

__version__ = "1.0.0"
