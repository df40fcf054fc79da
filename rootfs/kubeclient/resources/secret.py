import base64

from kubeclient.resources import Resource

__all__ = ('Secret', )


class Secret(Resource):
    kind = "Secret"

    @staticmethod
    def decode(secret):
        """Return the data of a Secret with every value base64 decoded."""
        data = {}
        for key, value in (secret.get('data') or {}).items():
            data[key] = base64.b64decode(value).decode(encoding='UTF-8')
        return data
