from . import comments, healthcheck, likes, playlists, subscriptions, tweets, users, videos  # noqa: F401
