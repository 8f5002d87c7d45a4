"""Module using reference-type values as dict keys that appear nowhere else."""


class Key:
    def __init__(self, name):
        self.name = name


HANDLERS = {Key("a"): "on", "plain": "off"}
NESTED = {"inner": {Key("b"): 1}}
