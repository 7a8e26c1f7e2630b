"""
Feature modules of the social graph service.
Each module keeps its own models, schemas, services and api router;
socialgraph.main mounts the routers and socialgraph.db.base registers the models.
"""
