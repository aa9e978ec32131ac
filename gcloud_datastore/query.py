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
"""The Query class, a chainable builder for datastore.Query messages.

Every builder method changes the query in place and returns it, so a query
is usually written as one expression:

  >>> query = (Query().kind('Task')
  ...          .where('done', '=', False)
  ...          .order('priority', 'desc')
  ...          .limit(10))

Combinations of projection, distinct on and ordering are not checked
here; Datastore rejects the invalid ones when the query runs.
"""

from gcloud_datastore import helper
from gcloud_datastore import key as key_module
from gcloud_datastore import protos

__all__ = ['Query']

_KEY_PROPERTY = '__key__'

_OPERATORS = {
    '<': protos.PropertyFilter.LESS_THAN,
    'lt': protos.PropertyFilter.LESS_THAN,
    '<=': protos.PropertyFilter.LESS_THAN_OR_EQUAL,
    'lte': protos.PropertyFilter.LESS_THAN_OR_EQUAL,
    '>': protos.PropertyFilter.GREATER_THAN,
    'gt': protos.PropertyFilter.GREATER_THAN,
    '>=': protos.PropertyFilter.GREATER_THAN_OR_EQUAL,
    'gte': protos.PropertyFilter.GREATER_THAN_OR_EQUAL,
    '=': protos.PropertyFilter.EQUAL,
    '==': protos.PropertyFilter.EQUAL,
    'eq': protos.PropertyFilter.EQUAL,
    'eql': protos.PropertyFilter.EQUAL,
    '!=': protos.PropertyFilter.NOT_EQUAL,
    'ne': protos.PropertyFilter.NOT_EQUAL,
    'in': protos.PropertyFilter.IN,
    'not_in': protos.PropertyFilter.NOT_IN,
    '~': protos.PropertyFilter.HAS_ANCESTOR,
    'ancestor': protos.PropertyFilter.HAS_ANCESTOR,
    'has_ancestor': protos.PropertyFilter.HAS_ANCESTOR,
    'has ancestor': protos.PropertyFilter.HAS_ANCESTOR,
}


def _to_operator(operator):
  """Normalize an operator string or enum value to a PropertyFilter enum.

  Raises:
    ValueError: if the operator is not recognized.
  """
  if isinstance(operator, str):
    op = _OPERATORS.get(operator.strip().lower())
    if op is not None:
      return op
  elif (isinstance(operator, int) and
        operator in protos.PropertyFilter.Operator.values() and
        operator != protos.PropertyFilter.OPERATOR_UNSPECIFIED):
    return operator
  raise ValueError('Unknown filter operator: %r' % (operator,))


class Query(object):
  """A query for entities, by kind, property filters, ancestor and order."""

  def __init__(self):
    self._kinds = []
    self._filters = []
    self._ancestor = None
    self._orders = []
    self._projection = []
    self._distinct_on = []
    self._limit = None
    self._offset = None
    self._start_cursor = None
    self._end_cursor = None

  def __repr__(self):
    return 'Query(%s)' % self.to_pb()

  def kind(self, *kinds):
    """Restrict the query to entities of the given kinds."""
    self._kinds.extend(kinds)
    return self

  def where(self, name, operator, value):
    """Add a property filter.

    Args:
      name: property name, '__key__' to filter on the key.
      operator: one of '=', '<', '<=', '>', '>=', '!=', 'in', 'not_in',
          '~' (has ancestor) or their word aliases, or a
          datastore.PropertyFilter.Operator value.
      value: value to compare the property to.

    Returns:
      this query.

    Raises:
      ValueError: if the operator is not recognized.
    """
    self._filters.append((name, _to_operator(operator), value))
    return self

  filter = where

  def ancestor(self, parent):
    """Restrict the query to descendants of parent (a Key or an Entity)."""
    if parent is not None and not isinstance(parent, key_module.Key):
      parent = parent.key
    self._ancestor = parent
    return self

  def order(self, name, direction='asc'):
    """Sort the results by a property.

    Args:
      name: property name; a leading '-' sorts descending.
      direction: 'asc' or 'desc'; anything starting with 'd' is descending.

    Returns:
      this query.
    """
    if direction and str(direction).lower().startswith('d'):
      if not name.startswith('-'):
        name = '-' + name
    self._orders.append(name)
    return self

  def limit(self, num):
    self._limit = num
    return self

  def offset(self, num):
    self._offset = num
    return self

  def start(self, cursor):
    """Resume from the cursor (bytes) of a previous batch."""
    self._start_cursor = cursor
    return self

  cursor = start

  def end(self, cursor):
    self._end_cursor = cursor
    return self

  def select(self, *names):
    """Only return the given properties."""
    self._projection.extend(names)
    return self

  projection = select

  def distinct_on(self, *names):
    """Return one result per combination of values of the given properties."""
    self._distinct_on.extend(names)
    return self

  group_by = distinct_on

  def to_pb(self):
    """Convert to a datastore.Query proto message.

    All filters, the ancestor included, go into a single AND composite
    filter.
    """
    query_proto = protos.Query()
    helper.add_kinds(query_proto, *self._kinds)
    helper.add_projection(query_proto, *self._projection)
    helper.add_distinct_on(query_proto, *self._distinct_on)
    helper.add_property_orders(query_proto, *self._orders)

    filters = [helper.set_property_filter(protos.Filter(), name, op, value)
               for name, op, value in self._filters]
    if self._ancestor is not None:
      filters.append(helper.set_property_filter(
          protos.Filter(), _KEY_PROPERTY,
          protos.PropertyFilter.HAS_ANCESTOR, self._ancestor))
    if filters:
      helper.set_composite_filter(
          query_proto.filter, protos.CompositeFilter.AND, *filters)

    if self._limit is not None:
      query_proto.limit.value = self._limit
    if self._offset is not None:
      query_proto.offset = self._offset
    if self._start_cursor:
      query_proto.start_cursor = self._start_cursor
    if self._end_cursor:
      query_proto.end_cursor = self._end_cursor
    return query_proto
