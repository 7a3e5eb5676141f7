"""Users app package.

Holds the custom user model used for every identity in the system
(clients, vendors and administrators) and the authentication endpoints.
Use ``apps.users.models.CustomUser`` as the AUTH_USER_MODEL throughout
the project.
"""
