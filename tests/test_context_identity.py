"""Tests for the no-getuseridentity-in-authenticated rule."""

import textwrap

import pytest

from convexguard.scanner.js_analyzer import lint_source

RULE_ID = "no-getuseridentity-in-authenticated"


def _lint(code: str, filename: str = "convex/notes.ts"):
    diagnostics = lint_source(textwrap.dedent(code), filename)
    return [d for d in diagnostics if d.rule_id == RULE_ID]


class TestAllowed:
    """Identity lookups the rule must leave alone."""

    def test_exempt_file(self):
        code = """
            import { query } from './_generated/server';
            export const authenticatedQuery = (definition) => query({
              args: definition.args,
              handler: async (ctx, args) => {
                const identity = await ctx.auth.getUserIdentity();
                if (!identity) {
                  throw new Error('Not authenticated');
                }
                return definition.handler(Object.assign({}, ctx, { identity }), args);
              },
            });
        """
        assert _lint(code, "convex/auth.ts") == []

    def test_outside_any_handler(self):
        code = """
            export const someFunction = async (ctx) => {
              const identity = await ctx.auth.getUserIdentity();
              return identity;
            };
        """
        assert _lint(code) == []

    def test_ctx_identity_inside_handler(self):
        code = """
            import { authenticatedQuery } from './auth';
            export const get = authenticatedQuery({
              args: {},
              handler: async (ctx) => {
                return ctx.identity.subject;
              },
            });
        """
        assert _lint(code) == []

    def test_property_read_without_call(self):
        code = """
            import { authenticatedQuery } from './auth';
            export const get = authenticatedQuery({
              args: {},
              handler: async (ctx) => {
                const lookup = ctx.auth.getUserIdentity;
                return typeof lookup;
              },
            });
        """
        assert _lint(code) == []

    def test_raw_query_handler_not_restricted(self):
        code = """
            import { query } from './_generated/server';
            export const get = query({
              args: {},
              handler: async (ctx) => {
                return await ctx.auth.getUserIdentity();
              },
            });
        """
        assert _lint(code) == []

    def test_wrapper_not_imported(self):
        code = """
            const authenticatedQuery = (definition) => definition;
            export const get = authenticatedQuery({
              handler: async (ctx) => {
                return await ctx.auth.getUserIdentity();
              },
            });
        """
        assert _lint(code) == []

    def test_handler_passed_by_reference(self):
        code = """
            import { authenticatedQuery } from './auth';
            const handler = async (ctx) => {
              return await ctx.auth.getUserIdentity();
            };
            export const get = authenticatedQuery({ args: {}, handler });
        """
        assert _lint(code) == []

    def test_other_property_function_not_restricted(self):
        code = """
            import { authenticatedQuery } from './auth';
            export const get = authenticatedQuery({
              args: {},
              onError: async (ctx) => {
                return await ctx.auth.getUserIdentity();
              },
              handler: async (ctx) => ctx.identity,
            });
        """
        assert _lint(code) == []

    def test_different_object_name(self):
        code = """
            import { authenticatedQuery } from './auth';
            export const get = authenticatedQuery({
              handler: async (context) => {
                return await context.auth.getUserIdentity();
              },
            });
        """
        assert _lint(code) == []

    def test_computed_member_not_matched(self):
        code = """
            import { authenticatedQuery } from './auth';
            export const get = authenticatedQuery({
              handler: async (ctx) => {
                return await ctx.auth['getUserIdentity']();
              },
            });
        """
        assert _lint(code) == []

    def test_computed_identifier_member_not_matched(self):
        code = """
            import { authenticatedQuery } from './auth';
            const getUserIdentity = 'getUserIdentity';
            export const get = authenticatedQuery({
              handler: async (ctx) => ctx.auth[getUserIdentity](),
            });
        """
        assert _lint(code) == []


class TestFlagged:
    """Forbidden lookups inside authenticated handlers."""

    def test_direct_in_query_handler(self):
        code = """\
            import { authenticatedQuery } from './auth';
            export const get = authenticatedQuery({
              args: {},
              handler: async (ctx) => {
                await ctx.auth.getUserIdentity();
              },
            });
        """
        diagnostics = _lint(code)
        assert len(diagnostics) == 1
        d = diagnostics[0]
        assert d.message_id == "useContextIdentity"
        assert d.node_type == "MemberExpression"
        assert (d.line, d.col) == (5, 10)
        assert "ctx.identity" in d.message

    def test_direct_in_mutation_handler(self):
        code = """
            import { authenticatedMutation } from './auth';
            export const create = authenticatedMutation({
              args: {},
              handler: async (ctx) => {
                const identity = await ctx.auth.getUserIdentity();
                return identity.subject;
              },
            });
        """
        assert [d.message_id for d in _lint(code)] == ["useContextIdentity"]

    def test_parent_directory_import(self):
        code = """
            import { authenticatedQuery } from '../auth';
            export const get = authenticatedQuery({
              args: {},
              handler: async (ctx) => {
                const id = await ctx.auth.getUserIdentity();
                return id && id.subject;
              },
            });
        """
        assert len(_lint(code, "convex/subfolder/notes.ts")) == 1

    def test_reexported_through_generated_server(self):
        code = """
            import { authenticatedQuery } from './_generated/server';
            export const get = authenticatedQuery({
              handler: async (ctx) => ctx.auth.getUserIdentity(),
            });
        """
        assert len(_lint(code)) == 1

    def test_function_expression_handler(self):
        code = """
            import { authenticatedMutation } from './auth';
            export const deleteNote = authenticatedMutation({
              args: {},
              handler: async function(ctx) {
                const identity = await ctx.auth.getUserIdentity();
                if (!identity) {
                  throw new Error('Not authenticated');
                }
              },
            });
        """
        assert len(_lint(code)) == 1

    def test_method_shorthand_handler(self):
        code = """
            import { authenticatedQuery } from './auth';
            export const get = authenticatedQuery({
              args: {},
              async handler(ctx) {
                return await ctx.auth.getUserIdentity();
              },
            });
        """
        assert len(_lint(code)) == 1

    def test_nested_helper_closure(self):
        code = """
            import { authenticatedQuery } from './auth';
            export const get = authenticatedQuery({
              args: {},
              handler: async (ctx) => {
                const helper = async () => {
                  const identity = await ctx.auth.getUserIdentity();
                  return identity;
                };
                await helper();
                return ctx.identity.subject;
              },
            });
        """
        diagnostics = _lint(code)
        assert len(diagnostics) == 1
        assert diagnostics[0].line == 7

    def test_deeply_nested_in_blocks_and_callbacks(self):
        code = """
            import { authenticatedMutation } from './auth';
            export const sync = authenticatedMutation({
              handler: async (ctx, args) => {
                for (const item of args.items) {
                  if (item.check) {
                    await Promise.all([1, 2].map(function () {
                      return ctx.auth.getUserIdentity();
                    }));
                  }
                }
              },
            });
        """
        assert len(_lint(code)) == 1

    @pytest.mark.parametrize("local", ["aq", "withAuth"])
    def test_aliased_wrapper(self, local):
        code = f"""
            import {{ authenticatedQuery as {local} }} from './auth';
            export const get = {local}({{
              handler: async (ctx) => ctx.auth.getUserIdentity(),
            }});
        """
        assert len(_lint(code)) == 1

    def test_each_call_reported(self):
        code = """
            import { authenticatedQuery, authenticatedMutation } from './auth';
            export const a = authenticatedQuery({
              handler: async (ctx) => ctx.auth.getUserIdentity(),
            });
            export const b = authenticatedMutation({
              handler: async (ctx) => {
                await ctx.auth.getUserIdentity();
                await ctx.auth.getUserIdentity();
              },
            });
            export const c = async (ctx) => ctx.auth.getUserIdentity();
        """
        assert [d.line for d in _lint(code)] == [4, 8, 9]
