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
"""Dataset and Transaction, the entry points for Datastore operations.

A Dataset is the data saved in a project's Datastore, analogous to a
database in the relational world.  Entities are created, read, updated and
deleted through it:

  >>> dataset = Dataset('my-todo-project', credentials)
  >>> task = dataset.entity('Task', description='Learn Datastore')
  >>> dataset.save(task)
  >>> query = dataset.query('Task').where('done', '=', False)
  >>> tasks = dataset.run(query)

Each operation is a single RPC; nothing is cached, batched or retried.
A Dataset is not meant to be shared by threads running transactional
operations at the same time.
"""

import logging

from gcloud_datastore import entity as entity_module
from gcloud_datastore import errors
from gcloud_datastore import key as key_module
from gcloud_datastore import protos
from gcloud_datastore import query as query_module
from gcloud_datastore import results
from gcloud_datastore import service as service_module

__all__ = [
    'Dataset',
    'Transaction',
]


class Dataset(object):
  """The main object for interacting with Datastore."""

  def __init__(self, project, credentials=None, host=None):
    """Constructor.

    Args:
      project: the Cloud project to connect to.
      credentials: oauth2client.Credentials to authorize the connection.
      host: the Cloud Datastore API host to use.

    Raises:
      ValueError: if project is missing.
    """
    project = str(project) if project is not None else ''
    if not project:
      raise ValueError('project is missing')
    self.service = service_module.Service(project, credentials, host=host)

  @property
  def project(self):
    """The Datastore project connected to."""
    return self.service.project

  def allocate_ids(self, incomplete_key, count=1):
    """Generate ids for a key before creating an entity.

    Args:
      incomplete_key: a Key without id or name.
      count: the number of new keys to create.

    Returns:
      a list of count complete Keys.

    Raises:
      Error: if incomplete_key is complete.
    """
    if incomplete_key.complete():
      raise errors.Error('An incomplete key must be provided.')
    self._ensure_service()
    incomplete_keys = [incomplete_key.to_pb() for _ in range(count)]
    allocate_res = self.service.allocate_ids(incomplete_keys)
    return [key_module.Key.from_pb(key) for key in allocate_res.keys]

  def save(self, *entities):
    """Persist one or more entities.

    Entities saved with an incomplete key get the key Datastore generated
    for them.

    Returns:
      the list of saved entities.
    """
    self._ensure_service()
    auto_id_entities = _auto_id_entities(entities)
    mutations = _save_mutations(entities)
    commit_res = self.service.commit(mutations)
    _update_incomplete_keys(auto_id_entities, commit_res.mutation_results)
    return list(entities)

  def find(self, key_or_kind, id_or_name=None):
    """Retrieve an entity by key, or by kind and id or name.

    Returns:
      the Entity, or None if it was not found.
    """
    key = key_or_kind
    if not isinstance(key, key_module.Key):
      key = key_module.Key(key_or_kind, id_or_name)
    found = self.find_all(key)
    return found[0] if found else None

  get = find

  def find_all(self, *keys):
    """Retrieve the entities for the given keys.

    Returns:
      LookupResults of the found entities, with the deferred keys and the
      missing entities.
    """
    self._ensure_service()
    lookup_res = self.service.lookup([key.to_pb() for key in keys],
                                     **self._read_options())
    return results.LookupResults(
        _to_entities(lookup_res.found),
        [key_module.Key.from_pb(key) for key in lookup_res.deferred],
        _to_entities(lookup_res.missing))

  lookup = find_all

  def delete(self, *entities_or_keys):
    """Remove entities, given as Entity or Key objects.

    Returns:
      True once the commit went through.
    """
    mutations = _delete_mutations(entities_or_keys)
    self._ensure_service()
    self.service.commit(mutations)
    return True

  def run(self, query, namespace=None):
    """Retrieve the entities matching a Query.

    Args:
      query: the Query to run.
      namespace: the namespace the query is to run within.

    Returns:
      QueryResults with the batch of entities, the cursor after it and the
      more results indicator.
    """
    self._ensure_service()
    query_res = self.service.run_query(query.to_pb(), namespace,
                                       **self._read_options())
    batch = query_res.batch
    return results.QueryResults(_to_entities(batch.entity_results),
                                batch.end_cursor, batch.more_results)

  run_query = run

  def transaction(self, callback=None):
    """Create a Transaction.

    With a callback, run callback(transaction) and commit.  Should anything
    fail, the transaction is rolled back and a TransactionError is raised
    from the error that caused it.

    Args:
      callback: optional function taking the transaction.

    Returns:
      the result of callback, or the open Transaction when no callback was
      given.

    Raises:
      TransactionError: if callback or the commit failed.

    Usage:
      >>> def add_user(tx):
      ...   if tx.find(user.key) is None:
      ...     tx.save(user)
      >>> dataset.transaction(add_user)
    """
    tx = Transaction(self.service)
    if callback is None:
      return tx
    try:
      result = callback(tx)
      tx.commit()
    except Exception as e:
      tx._rollback_after(e)
      raise errors.TransactionError('Transaction failed to commit.') from e
    return result

  def query(self, *kinds):
    """Create a Query, optionally restricted to the given kinds."""
    query = query_module.Query()
    if kinds:
      query.kind(*kinds)
    return query

  def key(self, kind=None, id_or_name=None):
    """Create a Key."""
    return key_module.Key(kind, id_or_name)

  def entity(self, key_or_kind=None, id_or_name=None, **properties):
    """Create an Entity from a Key, or from a kind and id or name.

    Usage:
      >>> user = dataset.entity('User', 'heidi@example.com',
      ...                       name='Heidi Henderson')
    """
    key = key_or_kind
    if not isinstance(key, key_module.Key):
      key = key_module.Key(key_or_kind, id_or_name)
    return entity_module.Entity(key, **properties)

  def _read_options(self):
    return {}

  def _ensure_service(self):
    """Raise an error unless an active connection to the service is set."""
    if not self.service:
      raise errors.Error('Must have active connection to service')


class Transaction(Dataset):
  """A Dataset whose operations run in one Datastore transaction.

  Lookups and queries read in the transaction; saves and deletes are
  buffered and sent together by commit.  A Transaction is also a context
  manager which commits on exit, or rolls back and raises
  TransactionError if the block failed:

    >>> with dataset.transaction() as tx:
    ...   if tx.find(user.key) is None:
    ...     tx.save(user)
  """

  def __init__(self, service):
    self.service = service
    self._id = None
    self._mutations = []
    self._auto_id_entities = []
    self.start()

  def __enter__(self):
    return self

  def __exit__(self, exc_type, exc_value, traceback):
    if exc_type is None:
      try:
        self.commit()
      except Exception as e:
        self._rollback_after(e)
        raise errors.TransactionError('Transaction failed to commit.') from e
      return False
    if not issubclass(exc_type, Exception):
      return False
    self._rollback_after(exc_value)
    raise errors.TransactionError(
        'Transaction failed to commit.') from exc_value

  @property
  def id(self):
    """The transaction handle, None once committed or rolled back."""
    return self._id

  def start(self):
    """Begin the remote transaction.

    Raises:
      TransactionError: if the transaction is already active.
    """
    if self._id is not None:
      raise errors.TransactionError('Transaction already opened.')
    self._ensure_service()
    self._id = self.service.begin_transaction().transaction
    return self

  begin_transaction = start

  def save(self, *entities):
    """Save entities when the transaction is committed.

    Returns:
      the list of entities; incomplete keys are completed by commit.
    """
    self._auto_id_entities.extend(
        _auto_id_entities(entities, offset=len(self._mutations)))
    self._mutations.extend(_save_mutations(entities))
    return list(entities)

  def delete(self, *entities_or_keys):
    """Delete entities or keys when the transaction is committed."""
    self._mutations.extend(_delete_mutations(entities_or_keys))
    return True

  def commit(self):
    """Commit the buffered mutations and close the transaction.

    Raises:
      TransactionError: if the transaction is not active.
    """
    if self._id is None:
      raise errors.TransactionError(
          'Cannot commit when not in a transaction.')
    self._ensure_service()
    commit_res = self.service.commit(self._mutations, transaction=self._id)
    _update_incomplete_keys(self._auto_id_entities,
                            commit_res.mutation_results)
    self._id = None
    self.reset()
    return True

  def rollback(self):
    """Roll the transaction back.

    Raises:
      TransactionError: if the transaction is not active.
    """
    if self._id is None:
      raise errors.TransactionError(
          'Cannot rollback when not in a transaction.')
    self._ensure_service()
    self.service.rollback(self._id)
    self._id = None
    self.reset()
    return True

  def reset(self):
    """Forget the saves and deletes buffered so far."""
    self._mutations = []
    self._auto_id_entities = []

  def transaction(self, callback=None):
    raise errors.TransactionError('Nested transactions are not supported.')

  def _read_options(self):
    return {'transaction': self._id}

  def _rollback_after(self, error):
    if self._id is None:
      return
    try:
      self.rollback()
    except Exception:
      logging.warning('rollback after %r failed', error, exc_info=True)


def _to_entities(entity_results):
  return [entity_module.Entity.from_pb(result.entity)
          for result in entity_results]


def _save_mutations(entities):
  mutations = []
  for entity in entities:
    mutation = protos.Mutation()
    mutation.upsert.CopyFrom(entity.to_pb())
    mutations.append(mutation)
  return mutations


def _delete_mutations(entities_or_keys):
  mutations = []
  for entity_or_key in entities_or_keys:
    key = entity_or_key
    if not isinstance(key, key_module.Key):
      key = entity_or_key.key
    mutation = protos.Mutation()
    mutation.delete.CopyFrom(key.to_pb())
    mutations.append(mutation)
  return mutations


def _auto_id_entities(entities, offset=0):
  """Pair each entity with an incomplete key with its mutation index."""
  return [(offset + index, entity) for index, entity in enumerate(entities)
          if entity.key is not None and entity.key.incomplete()]


def _update_incomplete_keys(auto_id_entities, mutation_results):
  """Give saved entities with an incomplete key the key generated for them.

  There is one mutation result per mutation, in submission order.
  """
  for index, entity in auto_id_entities:
    if index >= len(mutation_results):
      break
    result = mutation_results[index]
    if result.HasField('key'):
      entity.key = key_module.Key.from_pb(result.key)
