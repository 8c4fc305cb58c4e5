"""The components of a multi-path run that are fixed ahead of time,
and their serialization.

"""

from copy import deepcopy
from base64 import b64encode, b64decode
from zlib import compress, decompress

# instead of pickle we use dill, so we can save dynamically defined
# model classes
import dill

from pathpool.importance import ParetoSmoothedEstimator


class Apparatus(object):
    """The model, runner and weight estimator of a run."""

    PICKLE_PROTOCOL = 3

    def __init__(self, model, runner, estimator=None):

        if model is None:
            raise ValueError("must provide a model")

        if runner is None:
            raise ValueError("must provide a runner")

        self._model = model
        self._runner = runner

        if estimator is None:
            self._estimator = ParetoSmoothedEstimator()
        else:
            self._estimator = estimator

    @property
    def model(self):
        return self._model

    @property
    def runner(self):
        return self._runner

    @property
    def estimator(self):
        return self._estimator

    def serialize(self):
        """Serialize to a compressed, base64 encoded dill pickle.

        Returns
        -------
        serial_str : bytes

        """

        return b64encode(compress(dill.dumps(deepcopy(self),
                                             protocol=self.PICKLE_PROTOCOL,
                                             recurse=True)))

    @classmethod
    def deserialize(cls, serial_str):
        """Deserialize a string made by `serialize`.

        Parameters
        ----------
        serial_str : bytes

        Returns
        -------
        apparatus : Apparatus

        """

        apparatus = dill.loads(decompress(b64decode(serial_str)))

        if not isinstance(apparatus, Apparatus):
            raise TypeError("Deserialized object is a {}, not an Apparatus".format(
                type(apparatus).__name__))

        return apparatus

    def dump(self, file_path):
        """Write the serialized apparatus to a file."""

        with open(file_path, 'wb') as wf:
            wf.write(self.serialize())

    @classmethod
    def load(cls, file_path):
        """Read an apparatus written with `dump`."""

        with open(file_path, 'rb') as rf:
            serial_str = rf.read()

        return cls.deserialize(serial_str)
