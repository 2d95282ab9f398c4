"""
Railway platform access

- client: GraphQL transport
- registry: find/create/delete environments
- trigger: deploy strategy chain
- discovery: deployment URL extraction and polling
"""
