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
"""The Key class.

Every Datastore record has an identifying key, which includes the record's
kind and a unique identifier. The identifier may be either a name string,
assigned explicitly by the application, or an integer numeric id, assigned
automatically by Datastore.

A key may have a parent key; the chain of (kind, id or name) pairs from
the root ancestor down to the key itself is its path.  The partition
(project and namespace) is only carried by the outermost key.

A key with neither an id nor a name is called an incomplete key.  Such
keys can be saved, after which Datastore assigns them an id, or passed to
allocate_ids.

Usage:
  >>> key = Key('List', 'todos', parent=Key('User', 'heidi@example.com'))
  >>> key.path
  [('User', 'heidi@example.com'), ('List', 'todos')]
"""

from gcloud_datastore import protos

__all__ = ['Key']


class Key(object):
  """An immutable-once-fetched datastore key."""

  def __init__(self, kind=None, id_or_name=None, parent=None,
               dataset_id=None, namespace=None):
    """Constructor.

    Args:
      kind: the kind of the key.
      id_or_name: an int becomes the key id, anything else its name.
      parent: optional parent, a Key or an object with a `key` attribute.
      dataset_id: optional project of the key.
      namespace: optional namespace of the key.
    """
    self._frozen = False
    self._kind = kind
    self._id = None
    self._name = None
    self._parent = None
    self._dataset_id = dataset_id
    self._namespace = namespace
    if _is_id(id_or_name):
      self._id = id_or_name
    else:
      self._name = id_or_name
    self.parent = parent

  def __repr__(self):
    args = [', '.join(repr(item) for item in pair) for pair in self.path]
    extra = ''
    if self._dataset_id:
      extra += ', dataset_id=%r' % self._dataset_id
    if self._namespace:
      extra += ', namespace=%r' % self._namespace
    return 'Key(%s%s)' % (', '.join(args), extra)

  def __eq__(self, other):
    if not isinstance(other, Key):
      return NotImplemented
    return (self.path == other.path and
            self._dataset_id == other._dataset_id and
            self._namespace == other._namespace)

  def __ne__(self, other):
    if not isinstance(other, Key):
      return NotImplemented
    return not self.__eq__(other)

  # Keys are mutable until frozen.
  __hash__ = None

  def _check_frozen(self):
    if self._frozen:
      raise AttributeError('%r is frozen and cannot be modified' % (self,))

  def freeze(self):
    """Make this key (but not its parent) immutable."""
    self._frozen = True
    return self

  @property
  def frozen(self):
    return self._frozen

  @property
  def kind(self):
    return self._kind

  @kind.setter
  def kind(self, kind):
    self._check_frozen()
    self._kind = kind

  @property
  def id(self):
    return self._id

  @id.setter
  def id(self, new_id):
    """Set the id; a name already present is removed."""
    self._check_frozen()
    if new_id is not None:
      self._name = None
    self._id = new_id

  @property
  def name(self):
    return self._name

  @name.setter
  def name(self, new_name):
    """Set the name; an id already present is removed."""
    self._check_frozen()
    if new_name is not None:
      self._id = None
    self._name = new_name

  @property
  def parent(self):
    return self._parent

  @parent.setter
  def parent(self, new_parent):
    """Set the parent from a Key, or from anything holding one as `key`.

    Raises:
      TypeError: if new_parent is neither.
    """
    self._check_frozen()
    if new_parent is not None and not isinstance(new_parent, Key):
      parent_key = getattr(new_parent, 'key', None)
      if not isinstance(parent_key, Key):
        raise TypeError('Expected a Key or an object with a key as parent; '
                        'received %r.' % (new_parent,))
      new_parent = parent_key
    self._parent = new_parent

  @property
  def dataset_id(self):
    return self._dataset_id

  @dataset_id.setter
  def dataset_id(self, dataset_id):
    self._check_frozen()
    self._dataset_id = dataset_id

  @property
  def namespace(self):
    return self._namespace

  @namespace.setter
  def namespace(self, namespace):
    self._check_frozen()
    self._namespace = namespace

  @property
  def id_or_name(self):
    if self._id is not None:
      return self._id
    return self._name

  @property
  def path(self):
    """The (kind, id or name) pairs from the root ancestor to this key."""
    new_path = self._parent.path if self._parent is not None else []
    new_path.append((self._kind, self.id_or_name))
    return new_path

  def complete(self):
    """Whether the key has a kind and either an id or a name."""
    return not self.incomplete()

  def incomplete(self):
    """Whether the key lacks a kind or has neither an id nor a name."""
    return not self._kind or (self._id is None and not self._name)

  def to_pb(self):
    """Convert to a datastore.Key proto message.

    Returns:
      a new datastore.Key with the full path, root first.

    Raises:
      TypeError: an id or name in the path has the wrong type.
    """
    key_proto = protos.Key()
    for i, (kind, id_or_name) in enumerate(self.path):
      elem = key_proto.path.add()
      if kind:
        elem.kind = kind
      if id_or_name is None:
        continue  # incomplete key
      if _is_id(id_or_name):
        elem.id = id_or_name
      elif isinstance(id_or_name, str):
        elem.name = id_or_name
      else:
        raise TypeError(
            'Expected an integer id or string name at path element %d; '
            'received %r (a %s).' % (i, id_or_name, type(id_or_name)))
    if self._dataset_id or self._namespace:
      if self._dataset_id:
        key_proto.partition_id.project_id = self._dataset_id
      if self._namespace:
        key_proto.partition_id.namespace_id = self._namespace
    return key_proto

  @classmethod
  def from_pb(cls, key_proto):
    """Create a frozen Key from a datastore.Key proto message.

    The last path element becomes the key, the ones before it its parent
    chain.  Every key of the chain gets the partition of key_proto.
    """
    dataset_id = namespace = None
    if key_proto.HasField('partition_id'):
      dataset_id = key_proto.partition_id.project_id or None
      namespace = key_proto.partition_id.namespace_id or None
    key = None
    for elem in key_proto.path:
      id_type = elem.WhichOneof('id_type')
      id_or_name = getattr(elem, id_type) if id_type else None
      key = cls(elem.kind or None, id_or_name, parent=key,
                dataset_id=dataset_id, namespace=namespace).freeze()
    if key is None:
      key = cls(dataset_id=dataset_id, namespace=namespace).freeze()
    return key


def _is_id(id_or_name):
  return isinstance(id_or_name, int) and not isinstance(id_or_name, bool)
