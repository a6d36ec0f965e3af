""" Urls of the modules define here... """

# Swagger API...
from ..config.swagger import api

# All Namespaces...
from ..conversation.handler import conversation_namespace





# Adding the namespaces
class URLs:
    """ All application namespaces will be declare here... """

    _registered = False

    @staticmethod
    def add_namespaces():
        """ Function for adding namespaces... """

        if URLs._registered:
            return

        api.add_namespace(conversation_namespace)
        URLs._registered = True
