""" All Application Constants declare here... """

# Python Packages
from decouple import config


# App Constants
APP_ENV                         =   config('APP_ENV', default = 'development')
APP_SECRET_KEY                  =   config('APP_SECRET_KEY', default = 'change-me')
APP_DEBUG                       =   config('APP_DEBUG', default = False, cast = bool)


# Swagger Constants
SWAGGER_APP_PROPS       =   {
                                "name": "Advisor",
                                "version": "1.0",
                                "description": "Conversation engine for the AI advisor: \
                                bounded context windows, input/output screening, \
                                duplicate-query caching and tiered rate limits."
                            }


# Database Constants
# DATABASE_URL wins when set, otherwise the URI is built from DB_*
DATABASE_URL                    =   config('DATABASE_URL', default = '')
DB_HOST                         =   config('DB_HOST', default = 'localhost')
DB_PORT                         =   config('DB_PORT', default = '5432')
DB_NAME                         =   config('DB_NAME', default = 'advisor')
DB_USER                         =   config('DB_USER', default = 'advisor')
DB_PASSWORD                     =   config('DB_PASSWORD', default = '')


# Logging Constants
LOG_LEVEL                       =   config('LOG_LEVEL', default = 'INFO')
LOG_FORMAT                      =   config('LOG_FORMAT', default = 'text')   # "text" | "json"


# Cache Constants
ANALYSIS_CACHE_TTL_SECONDS      =   config('ANALYSIS_CACHE_TTL_SECONDS', default = 3600, cast = int)
QUERY_CACHE_TTL_SECONDS         =   config('QUERY_CACHE_TTL_SECONDS', default = 86400, cast = int)
CACHE_MAX_ENTRIES               =   config('CACHE_MAX_ENTRIES', default = 1000, cast = int)


# Message Store Constants
CONVERSATION_MESSAGES_LIMIT     =   config('CONVERSATION_MESSAGES_LIMIT', default = 50, cast = int)


# Rate Limit Constants
# Conversations whose per-conversation counts are kept (least recently used evicted first)
RATE_LIMIT_MAX_CONVERSATIONS    =   config('RATE_LIMIT_MAX_CONVERSATIONS', default = 10000, cast = int)
