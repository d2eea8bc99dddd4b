"""
mdcatalog.api.routers

HTTP routers: records, sharing, selections, health and dev auth.
"""
