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
"""gcloud_datastore service: one method per Datastore RPC."""

import logging

import httplib2
from google.protobuf import message
from google.rpc import code_pb2
from google.rpc import status_pb2

from gcloud_datastore import errors
from gcloud_datastore import helper
from gcloud_datastore import protos

__all__ = ['Service']

_PROTOBUF_CONTENT_TYPE = 'application/x-protobuf'


class Service(object):
  """Holds the authorized channel to the Datastore API of one project."""

  def __init__(self, project, credentials=None, host=None,
               project_endpoint=None):
    """Service constructor.

    Args:
      project: the Cloud project to use.
      credentials: oauth2client.Credentials to authorize the
          connection, default to no credentials.
      host: the Cloud Datastore API host to use. Must not be set if
          project_endpoint is also set.
      project_endpoint: the Cloud Datastore API project endpoint to use,
          defaults to the one derived from project and host.

    Raises:
      TypeError: when project is not set or when both project_endpoint and
      host are set.
    """
    if not project:
      raise TypeError('project argument is required.')
    if project_endpoint and host:
      raise TypeError('only one of project_endpoint and host is allowed.')
    self.project = project
    self._http = httplib2.Http()
    self._url = (project_endpoint
                 or helper.get_project_endpoint_from_env(project_id=project,
                                                         host=host))
    self._credentials = credentials
    if credentials:
      credentials.authorize(self._http)
    else:
      logging.warning('no datastore credentials')

  def lookup(self, keys, transaction=None):
    """Lookup entities by key.

    Args:
      keys: datastore.Key proto messages.
      transaction: optional transaction handle to read in.

    Returns:
      LookupResponse proto message.

    Raises:
      RPCError: The underlying RPC call failed with an HTTP error.
    """
    request = protos.LookupRequest()
    request.project_id = self.project
    request.keys.extend(keys)
    if transaction:
      request.read_options.transaction = transaction
    return self._call_method('lookup', request, protos.LookupResponse)

  def run_query(self, query, namespace=None, transaction=None):
    """Query for entities.

    Args:
      query: datastore.Query proto message.
      namespace: optional namespace to run the query in.
      transaction: optional transaction handle to read in.

    Returns:
      RunQueryResponse proto message.

    Raises:
      RPCError: The underlying RPC call failed with an HTTP error.
    """
    request = protos.RunQueryRequest()
    request.project_id = self.project
    request.partition_id.project_id = self.project
    if namespace:
      request.partition_id.namespace_id = namespace
    request.query.CopyFrom(query)
    if transaction:
      request.read_options.transaction = transaction
    return self._call_method('runQuery', request, protos.RunQueryResponse)

  def begin_transaction(self):
    """Begin a new transaction.

    Returns:
      BeginTransactionResponse proto message.

    Raises:
      RPCError: The underlying RPC call failed with an HTTP error.
    """
    request = protos.BeginTransactionRequest()
    request.project_id = self.project
    return self._call_method('beginTransaction', request,
                             protos.BeginTransactionResponse)

  def commit(self, mutations, transaction=None):
    """Commit mutations, either on their own or to close a transaction.

    Args:
      mutations: datastore.Mutation proto messages.
      transaction: optional transaction handle to commit.

    Returns:
      CommitResponse proto message.

    Raises:
      RPCError: The underlying RPC call failed with an HTTP error.
    """
    request = protos.CommitRequest()
    request.project_id = self.project
    if transaction:
      request.mode = protos.CommitRequest.TRANSACTIONAL
      request.transaction = transaction
    else:
      request.mode = protos.CommitRequest.NON_TRANSACTIONAL
    request.mutations.extend(mutations)
    return self._call_method('commit', request, protos.CommitResponse)

  def rollback(self, transaction):
    """Rollback a transaction.

    Args:
      transaction: the transaction handle.

    Returns:
      RollbackResponse proto message.

    Raises:
      RPCError: The underlying RPC call failed with an HTTP error.
    """
    request = protos.RollbackRequest()
    request.project_id = self.project
    request.transaction = transaction
    return self._call_method('rollback', request, protos.RollbackResponse)

  def allocate_ids(self, keys):
    """Allocate ids for incomplete keys.

    Args:
      keys: incomplete datastore.Key proto messages.

    Returns:
      AllocateIdsResponse proto message.

    Raises:
      RPCError: The underlying RPC call failed with an HTTP error.
    """
    request = protos.AllocateIdsRequest()
    request.project_id = self.project
    request.keys.extend(keys)
    return self._call_method('allocateIds', request,
                             protos.AllocateIdsResponse)

  def _call_method(self, method, req, resp_class):
    """_call_method call the given RPC method over HTTP.

    It uses the given protobuf message request as the payload and
    returns the deserialized protobuf message response.

    Args:
      method: RPC method name to be called.
      req: protobuf message for the RPC request.
      resp_class: protobuf message class for the RPC response.

    Returns:
      Deserialized resp_class protobuf message instance.

    Raises:
      RPCError: The rpc method call failed.
    """
    payload = req.SerializeToString()
    headers = {
        'Content-Type': _PROTOBUF_CONTENT_TYPE,
        'Content-Length': str(len(payload)),
        'X-Goog-Api-Format-Version': '2'
        }
    response, content = self._http.request(
        '%s:%s' % (self._url, method),
        method='POST', body=payload, headers=headers)
    if response.status != 200:
      error = _make_rpc_error(method, response, content)
      logging.debug('%s', error)
      raise error
    resp = resp_class()
    resp.ParseFromString(content)
    return resp


def _make_rpc_error(method, response, content):
  if response.get('content-type') != _PROTOBUF_CONTENT_TYPE:
    if isinstance(content, bytes):
      content = content.decode('utf-8', 'replace')
    return errors.RPCError(
        method, code_pb2.INTERNAL,
        'Non-protobuf error: %s. HTTP status code was: %s'
        % (content, response.status))
  status = status_pb2.Status()
  try:
    status.ParseFromString(content)
  except message.DecodeError:
    return errors.RPCError(
        method, code_pb2.INTERNAL,
        'Unable to parse Status protocol buffer: HTTP status code was %s.'
        % response.status)
  code_string = code_pb2.Code.Name(status.code)
  if status.code == code_pb2.OK:
    return errors.RPCError(
        method, code_pb2.INTERNAL,
        'Unexpected OK error code with HTTP status code of %s. '
        'Message: %s' % (response.status, status.message))
  return errors.RPCError(
      method, status.code,
      'Error code: %s. Message: %s' % (code_string, status.message))
