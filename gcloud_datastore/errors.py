#
# Copyright 2015 Google Inc. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
"""gcloud_datastore errors."""

__all__ = [
    'Error',
    'RPCError',
    'TransactionError',
]


class Error(Exception):
  """A Datastore client error occured."""
  pass


class RPCError(Error):
  """The Datastore RPC failed."""

  method = None
  code = None
  message = None

  _failure_format = ('datastore call {method} failed: {message}')

  def __init__(self, method, code, message):
    self.method = method
    self.code = code
    self.message = message
    super(RPCError, self).__init__(method, code, message)

  def __str__(self):
    return self._failure_format.format(method=self.method,
                                       message=self.message)


class TransactionError(Error):
  """A Datastore transaction failed.

  When raised by the transaction wrapper, the error that made the
  transaction fail is available as `cause` (and as `__cause__`).
  """

  @property
  def cause(self):
    return self.__cause__
