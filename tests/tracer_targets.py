"""Callables used as custom tracer targets in tests."""


def compute(x, y):
    return x + y


async def fetch(value):
    return value


class Service:
    def handle(self, payload):
        return f"handled:{payload}"

    @staticmethod
    def version():
        return "1.0"

    @classmethod
    def build(cls):
        return cls()
