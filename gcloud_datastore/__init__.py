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
"""gcloud_datastore client."""

import threading

from . import helper
from . import protos
from .dataset import Dataset
from .dataset import Transaction
from .entity import Entity
from .errors import Error
from .errors import RPCError
from .errors import TransactionError
from .helper import GeoPoint
from .key import Key
from .query import Query
from .results import LookupResults
from .results import QueryResults
from .service import Service

__version__ = '0.5.0'
VERSION = (0, 5, 0, '~')

_dataset_holder = {}  # thread id -> thread-local dataset.
_options = {}  # Global options.
# Guards all access to _options and writes to _dataset_holder.
_rlock = threading.RLock()


def set_options(**kwargs):
  """Set datastore connection options.

  Args:
    project_id: the Cloud project to connect to, defaults to
        helper.get_project_id().
    credentials: oauth2client.Credentials to authorize the
        connection, defaults to helper.get_credentials_from_env().
    keyfile: service account key file path or contents (dict) to build
        the credentials from. Ignored if credentials is set.
    host: the Cloud Datastore API host to use. Defaults to the Google APIs
        production server.
  """
  with _rlock:
    _options.update(kwargs)
    _dataset_holder.clear()


def get_default_dataset():
  """Returns the default Dataset of the calling thread.

  Defaults project to helper.get_project_id() and credentials to
  helper.get_credentials_from_env().

  Use set_options to override defaults.

  Raises:
    ValueError: if no project could be determined.
  """
  tid = id(threading.current_thread())
  dataset = _dataset_holder.get(tid)
  if not dataset:
    with _rlock:
      # No other thread would insert a value in our slot, so no need
      # to recheck existence inside the lock.
      if not _options.get('project_id'):
        _options['project_id'] = helper.get_project_id()
      if 'credentials' not in _options:
        _options['credentials'] = helper.get_credentials_from_env(
            keyfile=_options.get('keyfile'))
      # We still need the lock when caching the thread local dataset so we
      # don't race with _dataset_holder.clear() in set_options().
      _dataset_holder[tid] = dataset = Dataset(
          _options['project_id'], _options['credentials'],
          host=_options.get('host'))
  return dataset


def allocate_ids(incomplete_key, count=1):
  """See Dataset.allocate_ids."""
  return get_default_dataset().allocate_ids(incomplete_key, count)


def save(*entities):
  """See Dataset.save."""
  return get_default_dataset().save(*entities)


def find(key_or_kind, id_or_name=None):
  """See Dataset.find."""
  return get_default_dataset().find(key_or_kind, id_or_name)


def find_all(*keys):
  """See Dataset.find_all."""
  return get_default_dataset().find_all(*keys)


def delete(*entities_or_keys):
  """See Dataset.delete."""
  return get_default_dataset().delete(*entities_or_keys)


def run(query, namespace=None):
  """See Dataset.run."""
  return get_default_dataset().run(query, namespace=namespace)


def transaction(callback=None):
  """See Dataset.transaction."""
  return get_default_dataset().transaction(callback)
