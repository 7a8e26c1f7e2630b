# Import all models here so Base.metadata knows every table
from socialgraph.db.session import Base

# Import all models below
from socialgraph.modules.user_management.models.user import User
from socialgraph.modules.posts.models.post import Post
from socialgraph.modules.friendships.models.friendship import FriendEdge
from socialgraph.modules.follows.models.follow import Follow

# Add any other models that need to be created with the schema
