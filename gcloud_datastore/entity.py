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
"""The Entity class: a Key plus a bag of named property values."""

import collections.abc

from gcloud_datastore import helper
from gcloud_datastore import key as key_module
from gcloud_datastore import protos

__all__ = ['Entity']


class Entity(collections.abc.MutableMapping):
  """A datastore record.

  Properties are read and written like dict items; values may be None,
  bool, int, float, str, bytes, naive utc datetime, GeoPoint, Key, Entity,
  or a list of those.  No schema is enforced locally.

  Usage:
    >>> task = Entity(Key('Task'), description='Learn Datastore')
    >>> task['done'] = False
    >>> task.set_exclude_from_indexes('description')
  """

  def __init__(self, key=None, **properties):
    self._key = None
    self._properties = {}
    self._exclude_from_indexes = {}
    self._persisted = False
    self.key = key
    self._properties.update(properties)

  @property
  def key(self):
    return self._key

  @key.setter
  def key(self, key):
    if key is not None and not isinstance(key, key_module.Key):
      raise TypeError('Expected a Key; received %r.' % (key,))
    self._key = key

  @property
  def properties(self):
    return self._properties

  def __getitem__(self, name):
    return self._properties[name]

  def __setitem__(self, name, value):
    self._properties[name] = value

  def __delitem__(self, name):
    del self._properties[name]

  def __iter__(self):
    return iter(self._properties)

  def __len__(self):
    return len(self._properties)

  def __eq__(self, other):
    if not isinstance(other, Entity):
      return NotImplemented
    return (self._key == other._key and
            self._properties == other._properties)

  def __ne__(self, other):
    if not isinstance(other, Entity):
      return NotImplemented
    return not self.__eq__(other)

  __hash__ = None

  def __repr__(self):
    return 'Entity(%r, %r)' % (self._key, self._properties)

  def set_exclude_from_indexes(self, name, exclude=True):
    """Flag a property to be left out of (or put back in) the indexes."""
    self._exclude_from_indexes[name] = bool(exclude)

  def is_excluded_from_indexes(self, name):
    return self._exclude_from_indexes.get(name, False)

  def persisted(self):
    """Whether this entity was retrieved from Datastore."""
    return self._persisted

  def to_pb(self):
    """Convert to a datastore.Entity proto message.

    Raises:
      TypeError: if a property value type is not supported.
    """
    entity_proto = protos.Entity()
    if self._key is not None:
      entity_proto.key.CopyFrom(self._key.to_pb())
    for name, value in self._properties.items():
      exclude = self._exclude_from_indexes.get(name)
      helper.set_property(entity_proto.properties, name, value, exclude)
    return entity_proto

  @classmethod
  def from_pb(cls, entity_proto):
    """Create an Entity from a datastore.Entity proto message."""
    entity = cls()
    if entity_proto.HasField('key'):
      entity.key = key_module.Key.from_pb(entity_proto.key)
    for name, value_proto in entity_proto.properties.items():
      entity[name] = helper.get_value(value_proto)
      if _excluded(value_proto):
        entity.set_exclude_from_indexes(name)
    entity._persisted = True
    return entity


def _excluded(value_proto):
  if value_proto.WhichOneof('value_type') == 'array_value':
    values = value_proto.array_value.values
    return bool(values) and all(v.exclude_from_indexes for v in values)
  return value_proto.exclude_from_indexes
